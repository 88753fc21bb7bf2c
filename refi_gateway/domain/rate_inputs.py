"""Turn market rates and a credit tier into engine inputs"""

import math
from dataclasses import dataclass
from typing import Dict, Optional
from refi_gateway.domain.models import (
    CreditTier,
    EngineInput,
    LoanInput,
    RateBreakdown,
    RateData,
    RateSource,
)
from refi_gateway.domain.verdict import run_engine


@dataclass(frozen=True)
class CreditSpread:
    """Markup over PMMS for a credit tier (decimal)"""

    spread_30: float
    spread_15: float


CREDIT_SPREADS: Dict[str, CreditSpread] = {
    "excellent": CreditSpread(0.0, 0.0),
    "good": CreditSpread(0.005, 0.004),
    "fair": CreditSpread(0.0125, 0.010),
}

# Trigger search
TRIGGER_FLOOR_RATE = 0.01
TRIGGER_ITERATIONS = 40
TRIGGER_15YR_OFFSET = -0.005
TRIGGER_30YR_OFFSET = 0.0025
TRIGGER_INCREMENTS_PER_UNIT = 800  # 0.125% steps


def credit_spread(credit_tier: Optional[str]) -> CreditSpread:
    return CREDIT_SPREADS.get(credit_tier or "excellent", CREDIT_SPREADS["excellent"])


def interpolate_rate(term_years: float, rate_15: float, rate_30: float) -> float:
    """
    Market rate for an arbitrary remaining term.

    15yr rate at or below 15 years, 30yr rate at or above 30, linear in between.
    """
    if term_years <= 15:
        return rate_15
    if term_years >= 30:
        return rate_30
    return rate_15 + (rate_30 - rate_15) * (term_years - 15) / 15


def build_engine_input(
    loan: LoanInput,
    rates: RateData,
    credit_tier: CreditTier,
    quoted_rate: Optional[float] = None,
    horizon_override_months: Optional[int] = None,
) -> EngineInput:
    """
    Fill the three refinance rate slots.

    A quoted rate (decimal) is used for every slot. Otherwise the slots come
    from PMMS plus the credit-tier spread, with the same-term rate interpolated
    between the 15yr and 30yr averages.
    """
    rate_same, rate_15, rate_30 = _final_rates(rates, loan.years_remaining, credit_tier, quoted_rate)

    return EngineInput(
        remaining_balance=loan.remaining_balance,
        current_annual_rate=loan.current_annual_rate,
        years_remaining=loan.years_remaining,
        closing_costs=loan.closing_costs,
        refi_rate_same_term=rate_same,
        refi_rate_15yr=rate_15,
        refi_rate_30yr=rate_30,
        horizon_override_months=horizon_override_months,
    )


def build_rate_breakdown(
    rates: RateData,
    years_remaining: float,
    credit_tier: CreditTier,
    source: RateSource,
    quoted_rate: Optional[float] = None,
) -> RateBreakdown:
    """Record the base rates, spreads, and final rates behind an analysis"""
    spread = credit_spread(credit_tier)
    rate_same, rate_15, rate_30 = _final_rates(rates, years_remaining, credit_tier, quoted_rate)

    return RateBreakdown(
        rate_source=source,
        base_rate_30yr=rates.fixed_30yr,
        base_rate_15yr=rates.fixed_15yr,
        fetched_at=rates.fetched_at,
        credit_spread_30=spread.spread_30,
        credit_spread_15=spread.spread_15,
        final_rate_same_term=rate_same,
        final_rate_15yr=rate_15,
        final_rate_30yr=rate_30,
        using_quoted_rate=quoted_rate is not None,
        quoted_rate=quoted_rate,
    )


def _final_rates(rates: RateData, years_remaining: float, credit_tier: CreditTier, quoted_rate: Optional[float]):
    if quoted_rate is not None:
        return quoted_rate, quoted_rate, quoted_rate

    spread = credit_spread(credit_tier)
    rate_30 = rates.fixed_30yr / 100
    rate_15 = rates.fixed_15yr / 100

    return (
        interpolate_rate(years_remaining, rate_15, rate_30) + spread.spread_30,
        rate_15 + spread.spread_15,
        rate_30 + spread.spread_30,
    )


def compute_trigger_rate(loan: LoanInput) -> float:
    """
    Highest refinance rate that still earns a green verdict.

    Bisects the same-term rate over [1%, current rate]; the 15yr and 30yr slots
    track it at -0.5% and +0.25%. The result is rounded to the nearest 0.125%.
    Returns a value near the floor when no rate in range turns green.
    """
    lo, hi = TRIGGER_FLOOR_RATE, loan.current_annual_rate

    for _ in range(TRIGGER_ITERATIONS):
        mid = (lo + hi) / 2
        output = run_engine(
            EngineInput(
                remaining_balance=loan.remaining_balance,
                current_annual_rate=loan.current_annual_rate,
                years_remaining=loan.years_remaining,
                closing_costs=loan.closing_costs,
                refi_rate_same_term=mid,
                refi_rate_15yr=mid + TRIGGER_15YR_OFFSET,
                refi_rate_30yr=mid + TRIGGER_30YR_OFFSET,
            )
        )
        if output.verdict.color == "green":
            lo = mid
        else:
            hi = mid

    steps = (lo + hi) / 2 * TRIGGER_INCREMENTS_PER_UNIT
    return math.floor(steps + 0.5) / TRIGGER_INCREMENTS_PER_UNIT
