"""Lender offer generation and scoring against the borrower's current loan"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List
from refi_gateway.domain.models import CreditTier, EngineInput, LenderRate, ScoredLenderRate
from refi_gateway.domain.amortization import monthly_payment
from refi_gateway.domain.verdict import run_engine

# Quoted 30yr rate minus this approximates the same lender's 15yr rate
FIFTEEN_YEAR_DISCOUNT = 0.005

SYNTHETIC_TERM_MONTHS = 360


@dataclass(frozen=True)
class LenderProfile:
    """Pricing profile for a synthetic lender"""

    name: str
    spread_30: float  # over PMMS 30yr, decimal
    spread_15: float  # over PMMS 15yr, decimal
    fee_percent: float  # closing costs as share of balance
    points: float


LENDER_PROFILES: List[LenderProfile] = [
    LenderProfile("Rocket Mortgage", -0.0015, -0.001, 0.015, 0.5),
    LenderProfile("Better.com", 0.001, 0.0005, 0.018, 0),
    LenderProfile("Wells Fargo", 0.003, 0.002, 0.02, 0.75),
    LenderProfile("Chase", 0.005, 0.004, 0.012, 0),
    LenderProfile("LoanDepot", 0.002, 0.0015, 0.022, 0.25),
    LenderProfile("U.S. Bank", 0.004, 0.003, 0.017, 0),
]

CREDIT_TIER_ADJUSTMENTS: Dict[str, float] = {
    "excellent": 0.0,
    "good": 0.003,
    "fair": 0.008,
}

COLOR_ORDER: Dict[str, int] = {"green": 0, "yellow": 1, "red": 2}


def generate_synthetic_rates(
    pmms_30yr: float,
    pmms_15yr: float,
    credit_tier: CreditTier,
    balance: float,
) -> List[LenderRate]:
    """
    Build one 30-year offer per lender profile from PMMS rates (percentages).

    rate = PMMS 30yr / 100 + lender spread + credit-tier adjustment
    fees = balance x lender fee percent, rounded to whole dollars
    """
    credit_adj = CREDIT_TIER_ADJUSTMENTS.get(credit_tier, CREDIT_TIER_ADJUSTMENTS["excellent"])
    now = datetime.now(timezone.utc).isoformat()

    offers = []
    for idx, profile in enumerate(LENDER_PROFILES):
        rate_30 = pmms_30yr / 100 + profile.spread_30 + credit_adj
        fees = float(round(balance * profile.fee_percent))

        offers.append(
            LenderRate(
                id=f"synthetic-{idx}",
                lender_name=profile.name,
                rate=rate_30,
                apr=compute_simple_apr(balance, rate_30, SYNTHETIC_TERM_MONTHS, fees),
                monthly_payment=monthly_payment(balance, rate_30, SYNTHETIC_TERM_MONTHS),
                fees=fees,
                points=profile.points,
                loan_program="30yr Fixed",
                last_updated=now,
            )
        )

    return offers


def compute_simple_apr(principal: float, nominal_rate: float, term_months: int, fees: float) -> float:
    """
    Approximate APR by folding closing costs into the rate.

    Finds the monthly rate r at which the present value of the loan's payments
    equals the cash actually received (principal - fees), using damped Newton steps.
    Returns the nominal rate when there are no fees or fees swallow the principal.
    """
    if fees <= 0 or nominal_rate <= 0:
        return nominal_rate

    payment = monthly_payment(principal, nominal_rate, term_months)
    amount_received = principal - fees
    if amount_received <= 0:
        return nominal_rate

    r = nominal_rate / 12
    for _ in range(50):
        factor = (1 + r) ** term_months
        pv = payment * (factor - 1) / (r * factor)
        # d(PV)/dr for PV = payment * (1 - (1+r)^-n) / r
        pv_deriv = payment * (term_months * r / ((1 + r) * factor) - (factor - 1) / factor) / (r * r)

        diff = pv - amount_received
        if abs(diff) < 0.01:
            break

        # PV falls as r rises, so a positive diff raises r
        r -= 0.5 * diff / (pv_deriv or -1.0)
        if r <= 0:
            r = nominal_rate / 12 * 0.999

    return r * 12


def score_lender_rate(
    lender: LenderRate,
    balance: float,
    current_rate: float,
    years_remaining: float,
    closing_costs: float,
) -> ScoredLenderRate:
    """
    Run the full engine with a lender's quoted rate.

    - Quoted rate fills the same-term and 30yr slots; 15yr slot = rate - 0.5%
    - Lender fees replace the user's closing costs whenever they are positive
    """
    effective_costs = lender.fees if lender.fees > 0 else closing_costs

    output = run_engine(
        EngineInput(
            remaining_balance=balance,
            current_annual_rate=current_rate,
            years_remaining=years_remaining,
            closing_costs=effective_costs,
            refi_rate_same_term=lender.rate,
            refi_rate_15yr=lender.rate - FIFTEEN_YEAR_DISCOUNT,
            refi_rate_30yr=lender.rate,
        )
    )

    return ScoredLenderRate(
        lender=lender,
        fees=effective_costs,
        verdict=output.verdict,
        monthly_savings=-output.verdict.monthly_delta,
        break_even_months=output.verdict.break_even_months,
        total_savings=output.verdict.net_savings,
        engine_output=output,
    )


def sort_scored_rates(rates: List[ScoredLenderRate]) -> List[ScoredLenderRate]:
    """Green before yellow before red; higher total savings first within a color"""
    return sorted(
        rates,
        key=lambda s: (COLOR_ORDER.get(s.verdict.color, COLOR_ORDER["red"]), -s.total_savings),
    )
