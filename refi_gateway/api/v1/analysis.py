"""POST /v1/analyze - refinance analysis endpoint"""

import math
import time
from dataclasses import asdict
from fastapi import APIRouter, Depends, Request

from refi_gateway.api.v1.schemas import AnalyzeRequest, AnalyzeResponse, ScenarioSchema
from refi_gateway.api.dependencies import get_fallback_rates, get_rate_service, get_request_id
from refi_gateway.domain.models import LoanInput, RateData, ScenarioResult
from refi_gateway.domain.rate_inputs import build_engine_input, build_rate_breakdown, compute_trigger_rate
from refi_gateway.domain.verdict import run_engine
from refi_gateway.infrastructure.rate_service import RateProvenanceService
from refi_gateway.infrastructure.observability.metrics import record_verdict
from refi_gateway.infrastructure.observability.logging import log_analysis

router = APIRouter()


def scenario_to_schema(scenario: ScenarioResult) -> ScenarioSchema:
    """JSON cannot carry infinity, so a no-cost refinance reports a flag instead"""
    fields = asdict(scenario)
    irr = scenario.annualized_return
    no_cost = irr is not None and math.isinf(irr)
    fields["annualized_return"] = None if no_cost else irr
    return ScenarioSchema(**fields, no_cost_refinance=no_cost)


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_refinance(
    request_body: AnalyzeRequest,
    request: Request,
    rate_service: RateProvenanceService = Depends(get_rate_service),
    fallback: RateData = Depends(get_fallback_rates),
):
    """
    Compare staying on the current loan with refinance options.

    Flow:
    1. Resolve market rates (cache, live PMMS, or fallback file)
    2. Build engine input from rates + credit tier, or the quoted rate
    3. Run the engine (scenarios, ranking, verdict)
    4. When the verdict is not green, find the rate that would make it green
    """
    start_time = time.time()
    request_id = get_request_id(request)

    lookup = await rate_service.get_latest_rates(fallback)

    loan = LoanInput(
        remaining_balance=request_body.remaining_balance,
        current_annual_rate=request_body.current_annual_rate,
        years_remaining=request_body.years_remaining,
        closing_costs=request_body.closing_costs,
    )
    engine_input = build_engine_input(
        loan,
        lookup.rates,
        request_body.credit_tier,
        quoted_rate=request_body.quoted_rate,
        horizon_override_months=request_body.horizon_months,
    )
    output = run_engine(engine_input)

    trigger_rate = None
    if output.verdict.color != "green":
        candidate = compute_trigger_rate(loan)
        if 0 < candidate < loan.current_annual_rate:
            trigger_rate = candidate

    breakdown = build_rate_breakdown(
        lookup.rates,
        request_body.years_remaining,
        request_body.credit_tier,
        lookup.source,
        quoted_rate=request_body.quoted_rate,
    )

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_verdict(output.verdict.color, output.verdict.best_scenario_id)
    log_analysis(
        request_id,
        lookup.source,
        output.verdict.color,
        output.verdict.best_scenario_id,
        output.horizon_months,
        duration_ms,
    )

    return AnalyzeResponse(
        horizon_months=output.horizon_months,
        scenarios=[scenario_to_schema(s) for s in output.scenarios],
        verdict=asdict(output.verdict),
        rate_breakdown=asdict(breakdown),
        trigger_rate=trigger_rate,
    )
