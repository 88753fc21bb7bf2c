"""Fixed-rate amortization math - payment, schedule, and balance formulas"""

from typing import List
from refi_gateway.domain.models import AmortizationRow
from refi_gateway.utils.money import round2


def monthly_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """
    Monthly payment for a fixed-rate fully-amortizing loan.

    Formula: M = P * r(1+r)^n / ((1+r)^n - 1), with r = annual_rate / 12

    Edge cases:
    - principal <= 0 or term_months <= 0: 0
    - annual_rate <= 0: straight-line principal / term_months

    Returns:
        Payment in dollars, rounded to cents
    """
    if principal <= 0 or term_months <= 0:
        return 0.0

    if annual_rate <= 0:
        return round2(principal / term_months)

    r = annual_rate / 12
    factor = (1 + r) ** term_months
    return round2(principal * (r * factor) / (factor - 1))


def amortization_schedule(principal: float, annual_rate: float, term_months: int) -> List[AmortizationRow]:
    """
    Generate the month-by-month amortization schedule.

    Requirements:
    - Interest and principal rounded to cents on every row
    - Last row pays off the exact remaining balance (absorbs rounding drift)
    - Negative balances from floating-point error clamp to 0

    Example:
        $250,000 at 6.5% over 240 months: first row interest = $1,354.17,
        last row remaining balance = 0.00
    """
    payment = monthly_payment(principal, annual_rate, term_months)
    r = annual_rate / 12
    balance = principal

    schedule = []
    for month in range(1, term_months + 1):
        interest = round2(balance * r)
        is_last = month == term_months

        principal_paid = round2(balance) if is_last else round2(payment - interest)
        balance = round2(balance - principal_paid)
        if balance < 0:
            balance = 0.0

        schedule.append(
            AmortizationRow(
                month=month,
                payment=round2(principal_paid + interest) if is_last else payment,
                principal_paid=principal_paid,
                interest_paid=interest,
                remaining_balance=balance,
            )
        )

    return schedule


def total_interest_within_months(schedule: List[AmortizationRow], k: int) -> float:
    """Total interest paid over the first min(k, len(schedule)) months"""
    limit = min(k, len(schedule))
    return round2(sum(row.interest_paid for row in schedule[:max(limit, 0)]))


def remaining_balance_at_month(schedule: List[AmortizationRow], k: int) -> float:
    """
    Principal still owed after month k.

    Returns the original principal for k <= 0 and 0 once k reaches the end of the term.
    """
    if k <= 0:
        if not schedule:
            return 0.0
        first = schedule[0]
        return round2(first.remaining_balance + first.principal_paid)
    if k >= len(schedule):
        return 0.0
    return schedule[k - 1].remaining_balance


def remaining_balance_closed_form(principal: float, annual_rate: float, term_months: int, at_month: int) -> float:
    """
    Remaining balance at month k without building a schedule.

    Formula: B_k = P(1+r)^k - M * ((1+r)^k - 1) / r

    Uses the cent-rounded payment, so it tracks the schedule within a few cents.
    """
    if at_month <= 0:
        return principal
    if at_month >= term_months:
        return 0.0

    r = annual_rate / 12
    payment = monthly_payment(principal, annual_rate, term_months)

    if r <= 0:
        return round2(principal - payment * at_month)

    factor = (1 + r) ** at_month
    balance = principal * factor - payment * (factor - 1) / r
    return round2(max(balance, 0.0))


def interest_within_horizon_closed_form(
    principal: float,
    annual_rate: float,
    term_months: int,
    horizon_months: int,
) -> float:
    """
    Interest paid within the horizon using the closed-form balance.

    interest = payments made - principal retired = M * k - (P - B_k), k = min(horizon, term)
    """
    k = min(horizon_months, term_months)
    payment = monthly_payment(principal, annual_rate, term_months)
    balance_at_k = remaining_balance_closed_form(principal, annual_rate, term_months, k)
    return round2(payment * k - (principal - balance_at_k))
