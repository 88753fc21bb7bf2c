"""GET /v1/market-rates - current PMMS averages with provenance"""

from fastapi import APIRouter, Depends, Response

from refi_gateway.api.v1.schemas import MarketRatesResponse
from refi_gateway.api.dependencies import get_fallback_rates, get_rate_service
from refi_gateway.domain.market_rates import age_description
from refi_gateway.domain.models import RateData
from refi_gateway.infrastructure.rate_service import RateProvenanceService

router = APIRouter()


@router.get("/market-rates", response_model=MarketRatesResponse)
async def get_market_rates(
    response: Response,
    rate_service: RateProvenanceService = Depends(get_rate_service),
    fallback: RateData = Depends(get_fallback_rates),
):
    lookup = await rate_service.get_latest_rates(fallback)

    # Allow CDN / browser caching for 10 minutes
    response.headers["Cache-Control"] = "public, s-maxage=600, stale-while-revalidate=3600"

    return MarketRatesResponse(
        rates=lookup.rates.to_dict(),
        rate_source=lookup.source,
        age_description=age_description(lookup.rates.fetched_at),
    )
