"""POST /v1/lender-rates - synthetic lender offers, optionally scored against the user's loan"""

import logging
from dataclasses import asdict
from typing import List
from fastapi import APIRouter, Depends

from refi_gateway.api.v1.schemas import LenderRatesRequest, LenderRatesResponse, ScoredLenderRateSchema
from refi_gateway.api.dependencies import get_fallback_rates, get_lender_cache, get_rate_service
from refi_gateway.domain.lenders import generate_synthetic_rates, score_lender_rate, sort_scored_rates
from refi_gateway.domain.models import LenderRate, RateData
from refi_gateway.infrastructure.cache import TTLCache
from refi_gateway.infrastructure.rate_service import RateProvenanceService

router = APIRouter()
logger = logging.getLogger(__name__)


def lender_cache_key(body: LenderRatesRequest) -> str:
    return f"{body.loan_amount:.2f}-{body.credit_tier}-{body.zip_code or 'nat'}"


@router.post("/lender-rates", response_model=LenderRatesResponse)
async def get_lender_rates(
    request_body: LenderRatesRequest,
    rate_service: RateProvenanceService = Depends(get_rate_service),
    fallback: RateData = Depends(get_fallback_rates),
    cache: TTLCache[List[LenderRate]] = Depends(get_lender_cache),
):
    """
    Offers are derived from PMMS averages plus per-lender spreads and fees.

    Offers are cached for an hour per (loan amount, credit tier, zip code).
    When current rate, years remaining, and closing costs are all supplied,
    every offer is run through the engine and the scored list is sorted
    green first, then by total savings.
    """
    key = lender_cache_key(request_body)
    offers = cache.get(key)
    source = "cache"

    if offers is None:
        lookup = await rate_service.get_latest_rates(fallback)
        offers = generate_synthetic_rates(
            lookup.rates.fixed_30yr,
            lookup.rates.fixed_15yr,
            request_body.credit_tier,
            request_body.loan_amount,
        )
        cache.set(offers, key)
        source = "synthetic"
        logger.info(
            "Generated synthetic lender rates",
            extra={"step": "lender_rates", "rate_source": lookup.source, "cache_key": key},
        )

    scored = None
    loan_fields = (request_body.current_annual_rate, request_body.years_remaining, request_body.closing_costs)
    if all(value is not None for value in loan_fields):
        ranked = sort_scored_rates(
            [
                score_lender_rate(
                    offer,
                    request_body.loan_amount,
                    request_body.current_annual_rate,
                    request_body.years_remaining,
                    request_body.closing_costs,
                )
                for offer in offers
            ]
        )
        scored = [
            ScoredLenderRateSchema(
                lender=asdict(s.lender),
                fees=s.fees,
                verdict=asdict(s.verdict),
                monthly_savings=s.monthly_savings,
                break_even_months=s.break_even_months,
                total_savings=s.total_savings,
            )
            for s in ranked
        ]

    return LenderRatesResponse(
        rates=[asdict(offer) for offer in offers],
        source=source,
        scored=scored,
    )
