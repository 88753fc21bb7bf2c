"""Market rate provenance: cache, then live PMMS, then the bundled fallback"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional
from refi_gateway.config import settings
from refi_gateway.domain.exceptions import RateFetchError
from refi_gateway.domain.market_rates import validate_rate_change
from refi_gateway.domain.models import RateData, RateLookup, RateSource
from refi_gateway.infrastructure.cache import TTLCache
from refi_gateway.infrastructure.clients.pmms import PMMSClient
from refi_gateway.infrastructure.observability.metrics import rate_fetch_failure_counter, record_rate_lookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchAttempt:
    """Result of one step in the lookup chain"""

    ok: bool
    rates: Optional[RateData] = None
    source: Optional[RateSource] = None
    reason: Optional[str] = None


class RateProvenanceService:
    """
    Resolve the rates to analyze with, tagged by where they came from.

    Steps, first success wins:
    1. Cached live rates younger than the TTL   -> "cached"
    2. Live PMMS fetch passing the anomaly check -> "live" (and cached)
    3. The caller's fallback                     -> "fallback"

    get_latest_rates never raises.
    """

    def __init__(
        self,
        client: PMMSClient | None = None,
        cache: TTLCache[RateData] | None = None,
        max_change_pts: float | None = None,
    ):
        self.client = client or PMMSClient()
        self.cache = cache or TTLCache(settings.rate_cache_ttl_seconds)
        self.max_change_pts = settings.rate_anomaly_max_change_pts if max_change_pts is None else max_change_pts

    async def get_latest_rates(self, fallback: RateData) -> RateLookup:
        steps: List[Callable[[RateData], Awaitable[FetchAttempt]]] = [
            self._from_cache,
            self._from_live,
        ]

        for step in steps:
            attempt = await step(fallback)
            if attempt.ok:
                record_rate_lookup(attempt.source)
                return RateLookup(rates=attempt.rates, source=attempt.source)

            if attempt.reason:
                logger.warning(
                    "Live PMMS rates unavailable, using fallback",
                    extra={"step": "rate_lookup", "rate_source": "fallback", "reason": attempt.reason},
                )

        record_rate_lookup("fallback")
        return RateLookup(rates=fallback, source="fallback")

    def clear_cache(self) -> None:
        self.cache.clear()

    async def _from_cache(self, fallback: RateData) -> FetchAttempt:
        cached = self.cache.get()
        if cached is None:
            return FetchAttempt(ok=False)
        return FetchAttempt(ok=True, rates=cached, source="cached")

    async def _from_live(self, fallback: RateData) -> FetchAttempt:
        try:
            fresh = await self.client.fetch_rates()
        except RateFetchError as e:
            rate_fetch_failure_counter.labels(reason="error").inc()
            return FetchAttempt(ok=False, reason=str(e))
        except Exception as e:
            rate_fetch_failure_counter.labels(reason="error").inc()
            logger.exception("Unexpected error fetching PMMS rates", extra={"step": "rate_lookup"})
            return FetchAttempt(ok=False, reason=f"Unexpected PMMS fetch error: {e!r}")

        check = validate_rate_change(fresh, fallback, self.max_change_pts)
        if not check.valid:
            rate_fetch_failure_counter.labels(reason="anomaly").inc()
            return FetchAttempt(ok=False, reason=f"PMMS anomaly detected: {check.reason}")

        self.cache.set(fresh)
        logger.info(
            "Fetched live PMMS rates",
            extra={
                "step": "rate_lookup",
                "rate_source": "live",
                "fixed_30yr": fresh.fixed_30yr,
                "fixed_15yr": fresh.fixed_15yr,
            },
        )
        return FetchAttempt(ok=True, rates=fresh, source="live")
