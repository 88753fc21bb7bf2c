"""Weekly job: refresh data/rates.json from Freddie Mac PMMS

Keeps the last known good file when the fetch fails or the new rates jump
by more than the anomaly threshold; both cases exit 1 so the scheduler flags them.
"""

import asyncio
import logging
import sys
from refi_gateway.config import settings
from refi_gateway.domain.exceptions import RateAnomalyError, RateFetchError
from refi_gateway.domain.market_rates import validate_rate_change
from refi_gateway.domain.models import RateData
from refi_gateway.infrastructure.clients.pmms import PMMSClient
from refi_gateway.infrastructure.observability.logging import setup_logging
from refi_gateway.infrastructure.rate_store import RateStore

logger = logging.getLogger(__name__)


async def refresh_rates(store: RateStore, client: PMMSClient, max_change_pts: float) -> RateData:
    """
    Fetch, check against the stored snapshot, and persist.

    Raises:
        RateFetchError: Fetch or parse failed
        RateAnomalyError: Change versus the stored snapshot exceeds max_change_pts
    """
    existing = store.load()
    if existing is None:
        logger.info("No existing rate file, creating a fresh one", extra={"step": "fetch_rates", "path": str(store.path)})

    fresh = await client.fetch_rates()

    if fresh.fixed_15yr > fresh.fixed_30yr:
        logger.warning(
            "15yr rate above 30yr rate, verify manually",
            extra={"step": "fetch_rates", "fixed_30yr": fresh.fixed_30yr, "fixed_15yr": fresh.fixed_15yr},
        )

    if existing is not None:
        check = validate_rate_change(fresh, existing, max_change_pts)
        if not check.valid:
            raise RateAnomalyError(check.reason)

    store.save(fresh)
    return fresh


def main(store: RateStore | None = None, client: PMMSClient | None = None) -> int:
    """Returns the process exit code"""
    store = store or RateStore()
    client = client or PMMSClient()

    try:
        fresh = asyncio.run(refresh_rates(store, client, settings.rate_anomaly_max_change_pts))
    except RateAnomalyError as e:
        logger.error(
            "Rate anomaly, keeping existing rate file",
            extra={"step": "fetch_rates", "reason": str(e)},
        )
        return 1
    except RateFetchError as e:
        logger.error(
            "PMMS fetch failed, keeping last known good rates",
            extra={"step": "fetch_rates", "reason": str(e)},
        )
        return 1

    logger.info(
        "Rates updated",
        extra={
            "step": "fetch_rates",
            "fixed_30yr": fresh.fixed_30yr,
            "fixed_15yr": fresh.fixed_15yr,
            "fetched_at": fresh.fetched_at,
        },
    )
    return 0


def run() -> None:
    setup_logging(settings.log_level)
    sys.exit(main())


if __name__ == "__main__":
    run()
