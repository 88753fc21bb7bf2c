"""Scenario generation - stay-current baseline vs. candidate refinances"""

import math
from dataclasses import dataclass
from typing import List, Optional
from refi_gateway.domain.models import AmortizationRow, EngineInput, ScenarioId, ScenarioResult
from refi_gateway.domain.amortization import (
    amortization_schedule,
    monthly_payment,
    remaining_balance_at_month,
    total_interest_within_months,
)
from refi_gateway.domain.breakeven import simple_break_even, true_break_even
from refi_gateway.domain.irr import compute_irr
from refi_gateway.utils.money import format_currency, round2

TERM_15YR_MONTHS = 180
TERM_30YR_MONTHS = 360
MIN_YEARS_FOR_15YR = 15


def full_term_months(years_remaining: float) -> int:
    """Remaining term in whole months, rounding half-months up"""
    return int(math.floor(years_remaining * 12 + 0.5))


def resolve_horizon(engine_input: EngineInput) -> int:
    """
    Comparison horizon in months.

    Defaults to the full remaining term; a positive override replaces it.
    Non-positive overrides are ignored.
    """
    override = engine_input.horizon_override_months
    if override is not None and override > 0:
        return int(override)
    return full_term_months(engine_input.years_remaining)


@dataclass(frozen=True)
class _Baseline:
    """Reference values every refinance scenario is measured against"""

    payment: float
    schedule: List[AmortizationRow]
    net_cost: float
    remaining_balance: float


def generate_scenarios(engine_input: EngineInput) -> List[ScenarioResult]:
    """
    Build every applicable scenario, always starting with the baseline.

    Inclusion rules (evaluated independently, in this order):
    0) stay_current   - always; term = full remaining term
    1) refi_same_term - same-term rate < current rate; term = full remaining term
    2) refi_15yr      - years_remaining > 15 AND 15yr rate < current rate; term = 180
    3) refi_30yr      - 30yr rate < current rate; term = 360

    The baseline always runs over the full remaining term, even when a shorter
    horizon is selected, so its balance at a shortened horizon is still owed.
    """
    principal = engine_input.remaining_balance
    current_rate = engine_input.current_annual_rate
    full_term = full_term_months(engine_input.years_remaining)
    horizon = resolve_horizon(engine_input)

    baseline_schedule = amortization_schedule(principal, current_rate, full_term)
    baseline_result = _build_scenario(
        scenario_id="stay_current",
        label="Stay Current",
        principal=principal,
        rate=current_rate,
        term_months=full_term,
        horizon_months=horizon,
        fees=0.0,
        schedule=baseline_schedule,
        baseline=None,
    )
    baseline = _Baseline(
        payment=baseline_result.monthly_payment,
        schedule=baseline_schedule,
        net_cost=baseline_result.net_cost_at_horizon,
        remaining_balance=baseline_result.remaining_balance_at_horizon,
    )

    candidates = []
    if engine_input.refi_rate_same_term < current_rate:
        candidates.append(("refi_same_term", "Refi (Same Term)", engine_input.refi_rate_same_term, full_term))
    if engine_input.years_remaining > MIN_YEARS_FOR_15YR and engine_input.refi_rate_15yr < current_rate:
        candidates.append(("refi_15yr", "Refi (15-Year)", engine_input.refi_rate_15yr, TERM_15YR_MONTHS))
    if engine_input.refi_rate_30yr < current_rate:
        candidates.append(("refi_30yr", "Refi (30-Year Reset)", engine_input.refi_rate_30yr, TERM_30YR_MONTHS))

    scenarios = [baseline_result]
    for scenario_id, label, rate, term_months in candidates:
        scenario = _build_scenario(
            scenario_id=scenario_id,
            label=label,
            principal=principal,
            rate=rate,
            term_months=term_months,
            horizon_months=horizon,
            fees=engine_input.closing_costs,
            schedule=amortization_schedule(principal, rate, term_months),
            baseline=baseline,
        )

        if scenario_id == "refi_30yr" and scenario.remaining_balance_at_horizon > 0:
            scenario.warnings.append(
                term_reset_warning(scenario.remaining_balance_at_horizon, horizon, full_term)
            )

        scenarios.append(scenario)

    return scenarios


def term_reset_warning(balance_owed: float, horizon_months: int, full_term: int) -> str:
    """
    Warning for a 30-year reset that leaves principal owed at the horizon.

    At the natural full term this is a trap: the balance is still owed exactly when
    the original loan would have been paid off. At a shorter, chosen horizon
    (selling or moving first) it is a tradeoff.
    """
    owed = format_currency(balance_owed)
    if horizon_months >= full_term:
        return (
            f"Term Reset Trap: You would still owe ${owed} "
            f"when your original loan would have been paid off."
        )
    return (
        f"Term Reset Tradeoff: You would still owe ${owed} after {horizon_months} months, "
        f"the end of your comparison horizon. That balance is due if you sell or move then."
    )


def _build_scenario(
    scenario_id: ScenarioId,
    label: str,
    principal: float,
    rate: float,
    term_months: int,
    horizon_months: int,
    fees: float,
    schedule: List[AmortizationRow],
    baseline: Optional[_Baseline],
) -> ScenarioResult:
    """Compute one scenario's horizon metrics; baseline=None builds the baseline itself"""
    payment = monthly_payment(principal, rate, term_months)

    k = max(min(horizon_months, term_months), 0)
    interest = total_interest_within_months(schedule, k)

    # A loan that ends on or before the horizon is fully paid off
    remaining = 0.0 if term_months <= horizon_months else remaining_balance_at_month(schedule, horizon_months)

    payments = round2(payment * k)
    cash_outflow = fees + payments
    net_cost = cash_outflow + remaining

    if baseline is None:
        return ScenarioResult(
            id=scenario_id,
            label=label,
            rate=rate,
            term_months=term_months,
            monthly_payment=payment,
            monthly_delta=0.0,
            interest_within_horizon=interest,
            fees=fees,
            remaining_balance_at_horizon=remaining,
            payments_within_horizon=payments,
            cash_outflow_within_horizon=cash_outflow,
            net_cost_at_horizon=net_cost,
            net_savings_at_horizon=0.0,
            cashflow_break_even_months=None,
            interest_break_even_months=None,
            annualized_return=None,
        )

    return ScenarioResult(
        id=scenario_id,
        label=label,
        rate=rate,
        term_months=term_months,
        monthly_payment=payment,
        monthly_delta=round2(payment - baseline.payment),
        interest_within_horizon=interest,
        fees=fees,
        remaining_balance_at_horizon=remaining,
        payments_within_horizon=payments,
        cash_outflow_within_horizon=cash_outflow,
        net_cost_at_horizon=net_cost,
        net_savings_at_horizon=round2(baseline.net_cost - net_cost),
        cashflow_break_even_months=simple_break_even(fees, baseline.payment, payment),
        interest_break_even_months=true_break_even(baseline.schedule, schedule, fees, horizon_months),
        annualized_return=compute_irr(
            fees,
            payment,
            baseline.payment,
            term_months,
            baseline.remaining_balance - remaining,
            horizon_months,
        ),
    )
