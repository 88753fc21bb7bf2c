"""Break-even calculations - months to recoup refinance closing costs"""

import math
from typing import List, Optional
from refi_gateway.domain.models import AmortizationRow


def simple_break_even(
    closing_costs: float,
    baseline_monthly_payment: float,
    refi_monthly_payment: float,
) -> Optional[int]:
    """
    Cashflow break-even: closing costs / monthly payment savings, ceiled.

    Returns:
        None if the payment does not decrease, 0 for free refinances

    Example:
        $5,000 costs, $2,000 -> $1,700 payment: 5000 / 300 = 16.67 -> 17 months
    """
    monthly_savings = baseline_monthly_payment - refi_monthly_payment
    if monthly_savings <= 0:
        return None
    if closing_costs <= 0:
        return 0
    return math.ceil(closing_costs / monthly_savings)


def true_break_even(
    baseline_schedule: List[AmortizationRow],
    refi_schedule: List[AmortizationRow],
    closing_costs: float,
    horizon_months: int,
) -> Optional[int]:
    """
    Interest break-even: first month where cumulative interest savings cover closing costs.

    For each month m (1-indexed):
        cumulative[m] = sum(baseline_interest[i] - refi_interest[i] for i in 1..m)

    Works even when the monthly payment rises (e.g. a shorter-term refinance),
    because it compares the cost of debt rather than cash out of pocket.

    Returns:
        Break-even month, 0 for free refinances, None if not reached within the horizon
    """
    if closing_costs <= 0:
        return 0

    limit = min(horizon_months, len(baseline_schedule), len(refi_schedule))

    cumulative_savings = 0.0
    for m in range(limit):
        cumulative_savings += baseline_schedule[m].interest_paid - refi_schedule[m].interest_paid
        if cumulative_savings >= closing_costs:
            return m + 1

    return None
