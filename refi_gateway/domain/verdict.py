"""Comparison and verdict engine - ranks scenarios and classifies the refinance decision"""

from dataclasses import replace
from typing import List, Optional
from refi_gateway.domain.models import EngineInput, EngineOutput, ScenarioResult, Verdict, VerdictColor
from refi_gateway.domain.scenarios import generate_scenarios, resolve_horizon
from refi_gateway.utils.money import format_currency, round2

BASELINE_ID = "stay_current"
PAYMENT_INCREASE_PREFIX = "Payment Increase"

# Break-even must land within this share of the horizon
GREEN_RATIO = 0.33
YELLOW_RATIO = 0.67

# Net savings floor per horizon year
GREEN_SAVINGS_PER_YEAR = 200.0
YELLOW_SAVINGS_PER_YEAR = 50.0

VERDICT_LABELS = {
    "green": "Refinance Looks Strong",
    "yellow": "Worth a Closer Look",
    "red": "Stay With Your Current Loan",
}


def run_engine(engine_input: EngineInput) -> EngineOutput:
    """
    Main entry point: generate scenarios, rank, select a winner, and issue a verdict.

    Pure function of its input; safe to call concurrently.
    """
    horizon = resolve_horizon(engine_input)
    scenarios = generate_scenarios(engine_input)

    baseline = next(s for s in scenarios if s.id == BASELINE_ID)
    winner = select_winner(rank_scenarios(scenarios), baseline)

    # Mark the winner, carrying its (possibly extended) warnings
    marked = [
        winner if s.id == winner.id else replace(s, is_best_long_term=False)
        for s in scenarios
    ]

    return EngineOutput(
        input=engine_input,
        horizon_months=horizon,
        scenarios=marked,
        verdict=generate_verdict(winner, baseline, horizon),
    )


def rank_scenarios(scenarios: List[ScenarioResult]) -> List[ScenarioResult]:
    """Order by net cost at horizon, cheapest first; ties keep generation order"""
    return sorted(scenarios, key=lambda s: s.net_cost_at_horizon)


def select_winner(ranked: List[ScenarioResult], baseline: ScenarioResult) -> ScenarioResult:
    """
    Pick the cheapest scenario and flag it as best.

    Rules:
    - Baseline ranked first (or nothing ranked): stay current wins
    - A refinance winner whose payment exceeds the baseline's gets a single
      "Payment Increase Warning"
    """
    if not ranked or ranked[0].id == BASELINE_ID:
        return replace(baseline, is_best_long_term=True)

    best = ranked[0]
    warnings = list(best.warnings)

    if best.monthly_payment > baseline.monthly_payment:
        already_warned = any(w.startswith(PAYMENT_INCREASE_PREFIX) for w in warnings)
        if not already_warned:
            delta = round2(best.monthly_payment - baseline.monthly_payment)
            warnings.append(
                f"Payment Increase Warning: +${format_currency(delta)}/mo higher than your current payment."
            )

    return replace(best, is_best_long_term=True, warnings=warnings)


def determine_color(break_even: Optional[int], net_savings: float, horizon_months: int) -> VerdictColor:
    """
    Classify the outcome with thresholds relative to the horizon.

    ratio = break_even / horizon_months, years = horizon_months / 12
    - No break-even, negative savings, or break-even beyond the horizon: red
    - ratio < 0.33 and savings > $200 x years: green  ($600 at 3yr, $2k at 10yr)
    - ratio < 0.67 and savings > $50 x years:  yellow ($150 at 3yr, $500 at 10yr)
    - otherwise: red
    """
    if break_even is None or net_savings < 0 or horizon_months <= 0:
        return "red"
    if break_even > horizon_months:
        return "red"

    ratio = break_even / horizon_months
    horizon_years = horizon_months / 12

    if ratio < GREEN_RATIO and net_savings > GREEN_SAVINGS_PER_YEAR * horizon_years:
        return "green"
    if ratio < YELLOW_RATIO and net_savings > YELLOW_SAVINGS_PER_YEAR * horizon_years:
        return "yellow"
    return "red"


def generate_verdict(winner: ScenarioResult, baseline: ScenarioResult, horizon_months: int) -> Verdict:
    """
    Build the verdict for the winning scenario.

    Break-even prefers the interest break-even and falls back to the cashflow one.
    A baseline winner is always red with zero savings.
    """
    if winner.id == baseline.id:
        return Verdict(
            color="red",
            label=VERDICT_LABELS["red"],
            message=(
                "At the provided rates, refinancing would not save you money after accounting "
                "for closing costs. Your current loan is your best option."
            ),
            break_even_months=None,
            monthly_delta=0.0,
            net_savings=0.0,
            best_scenario_id=BASELINE_ID,
        )

    break_even = winner.interest_break_even_months
    if break_even is None:
        break_even = winner.cashflow_break_even_months
    net_savings = winner.net_savings_at_horizon

    color = determine_color(break_even, net_savings, horizon_months)

    return Verdict(
        color=color,
        label=VERDICT_LABELS[color],
        message=verdict_message(color, winner, break_even, net_savings),
        break_even_months=break_even,
        monthly_delta=winner.monthly_delta,
        net_savings=net_savings,
        best_scenario_id=winner.id,
    )


def verdict_message(
    color: VerdictColor,
    winner: ScenarioResult,
    break_even: Optional[int],
    net_savings: float,
) -> str:
    """Human-readable explanation surfacing amounts, break-even months, and payment direction"""
    monthly_abs = format_currency(abs(winner.monthly_delta))
    direction = "less" if winner.monthly_delta < 0 else "more"
    savings_abs = format_currency(abs(net_savings))
    months = break_even if break_even is not None else "N/A"

    if color == "green":
        return (
            f"You'd recoup closing costs in {months} months and pay ${monthly_abs}/mo {direction}. "
            f"Over the comparison horizon, that's ${savings_abs} less in total cost. "
            f"Best option: {winner.label}."
        )
    if color == "yellow":
        return (
            f"Refinancing could save you ${savings_abs} overall, "
            f"but it would take {months} months to break even on closing costs. "
            f"Monthly payment would be ${monthly_abs}/mo {direction}."
        )
    if net_savings < 0:
        return (
            f"At these rates, refinancing would cost you ${savings_abs} more "
            f"over the comparison horizon after accounting for closing costs."
        )
    return (
        f"The potential savings of ${savings_abs} are modest relative to closing costs. "
        f"Break-even would take {months} months."
    )
