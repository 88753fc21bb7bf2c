"""Internal rate of return on refinance closing costs, solved by bisection"""

import math
from typing import Optional

# Monthly-rate search bracket, roughly -62% to +160,000% annualized
BRACKET_LOW = -0.08
BRACKET_LOW_WIDE = -0.099
BRACKET_HIGH = 2.0

MAX_ITERATIONS = 100
NPV_TOLERANCE = 0.01  # dollars


def _discount(r: float, months: int) -> float:
    """(1+r)^-months, saturating to inf for extreme horizons at negative rates"""
    try:
        return (1 + r) ** -months
    except OverflowError:
        return math.inf


def _annuity(r: float, months: int) -> float:
    """Present value of $1/month for `months` months at monthly rate r"""
    if months <= 0:
        return 0.0
    if r == 0:
        return float(months)
    return (1 - _discount(r, months)) / r


def refinance_npv(
    r: float,
    fees: float,
    refi_monthly_payment: float,
    baseline_monthly_payment: float,
    refi_term_months: int,
    balance_saved_at_horizon: float,
    horizon_months: int,
) -> float:
    """
    NPV of the refinance cash flows at monthly discount rate r.

    Cash flow model (two-period annuity):
        CF[0]       = -fees
        CF[1..k]    = base - refi          (payment delta while both loans run)
        CF[k+1..N]  = base                 (refi paid off, baseline still paying)
        CF[N]      += balance_saved         (terminal balance difference)

    where k = min(refi_term_months, N).
    """
    n = horizon_months
    k = min(refi_term_months, n)
    payment_delta = baseline_monthly_payment - refi_monthly_payment

    annuity_k = _annuity(r, k)
    annuity_after = _annuity(r, n) - annuity_k
    discount_n = _discount(r, n)

    return (
        -fees
        + payment_delta * annuity_k
        + baseline_monthly_payment * annuity_after
        + balance_saved_at_horizon * discount_n
    )


def compute_irr(
    fees: float,
    refi_monthly_payment: float,
    baseline_monthly_payment: float,
    refi_term_months: int,
    balance_saved_at_horizon: float,
    horizon_months: int,
) -> Optional[float]:
    """
    Annualized IRR of paying closing costs to refinance.

    Bisection over the monthly rate:
    - Initial bracket [-0.08, 2.0]
    - No sign change: widen the low end to -0.099 (near -100%/month)
    - Still none: try [0, 2.0], which recovers a positive root that a large negative
      terminal balance can hide at negative rates (30-year reset at full term)
    - 100 iterations, early exit when |NPV| < $0.01

    Args:
        fees: Closing costs paid upfront
        refi_monthly_payment: Payment on the new loan
        baseline_monthly_payment: Payment on the current loan
        refi_term_months: Full term of the new loan (may end before the horizon)
        balance_saved_at_horizon: Baseline balance minus refi balance at the horizon
        horizon_months: Comparison horizon N

    Returns:
        (1 + monthly_r)^12 - 1
        math.inf when fees <= 0 (no-cost refinance)
        None when horizon_months <= 0 or no root exists (e.g. payment rises with no
        balance benefit, so every future cash flow is negative)
    """
    if horizon_months <= 0:
        return None
    if fees <= 0:
        return math.inf

    def npv(r: float) -> float:
        return refinance_npv(
            r,
            fees,
            refi_monthly_payment,
            baseline_monthly_payment,
            refi_term_months,
            balance_saved_at_horizon,
            horizon_months,
        )

    lo, hi = BRACKET_LOW, BRACKET_HIGH
    npv_lo = npv(lo)
    npv_hi = npv(hi)

    if (npv_lo >= 0) == (npv_hi >= 0):
        lo = BRACKET_LOW_WIDE
        npv_lo = npv(lo)
        if (npv_lo >= 0) == (npv_hi >= 0):
            npv_zero = npv(0.0)
            if (npv_zero >= 0) == (npv_hi >= 0):
                return None
            lo, npv_lo = 0.0, npv_zero

    for _ in range(MAX_ITERATIONS):
        mid = (lo + hi) / 2
        npv_mid = npv(mid)

        if abs(npv_mid) < NPV_TOLERANCE:
            return (1 + mid) ** 12 - 1

        if (npv_mid >= 0) == (npv_lo >= 0):
            lo, npv_lo = mid, npv_mid
        else:
            hi = mid

    monthly_rate = (lo + hi) / 2
    return (1 + monthly_rate) ** 12 - 1
