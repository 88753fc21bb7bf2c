"""Freddie Mac PMMS client for current average mortgage rates"""

import math
import re
import httpx
from refi_gateway.config import settings
from refi_gateway.domain.exceptions import RateFetchError
from refi_gateway.domain.models import RateData
from refi_gateway.infrastructure.observability.metrics import rate_fetch_latency_histogram
from refi_gateway.utils.date_utils import utc_now_iso

RATE_30YR_PATTERN = re.compile(r"30-Year[^%]*?(\d+\.\d+)%", re.IGNORECASE)
RATE_15YR_PATTERN = re.compile(r"15-Year[^%]*?(\d+\.\d+)%", re.IGNORECASE)


def parse_pmms_html(
    html: str,
    fetched_at: str,
    min_pct: float = settings.rate_min_pct,
    max_pct: float = settings.rate_max_pct,
) -> RateData:
    """
    Extract the 30yr and 15yr averages from the PMMS page.

    Raises:
        RateFetchError: When either rate is missing or outside [min_pct, max_pct]
    """
    match_30 = RATE_30YR_PATTERN.search(html)
    match_15 = RATE_15YR_PATTERN.search(html)
    if not match_30 or not match_15:
        raise RateFetchError("Could not parse PMMS rates - HTML structure may have changed")

    fixed_30yr = float(match_30.group(1))
    fixed_15yr = float(match_15.group(1))
    if math.isnan(fixed_30yr) or math.isnan(fixed_15yr):
        raise RateFetchError(f"Parsed NaN rates: 30yr={match_30.group(1)}, 15yr={match_15.group(1)}")

    for label, value in (("30yr", fixed_30yr), ("15yr", fixed_15yr)):
        if value < min_pct or value > max_pct:
            raise RateFetchError(f"{label} rate {value}% outside expected range [{min_pct:g}%, {max_pct:g}%]")

    return RateData(fetched_at=fetched_at, fixed_30yr=fixed_30yr, fixed_15yr=fixed_15yr)


class PMMSClient:
    """Client for the public Freddie Mac PMMS page"""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.pmms_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def fetch_rates(self) -> RateData:
        """
        Fetch and validate the latest weekly rates. No caching, no fallback.

        Raises:
            RateFetchError: On timeout, HTTP errors, network failure, a malformed URL, or an unparseable page
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with rate_fetch_latency_histogram.time():
                    response = await client.get(
                        self.url,
                        headers={"User-Agent": settings.pmms_user_agent},
                    )
                response.raise_for_status()

            except httpx.TimeoutException as e:
                raise RateFetchError(f"PMMS timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise RateFetchError(f"HTTP {e.response.status_code} fetching PMMS") from e
            except httpx.RequestError as e:
                raise RateFetchError(f"PMMS request failed: {e}") from e
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise RateFetchError(f"PMMS request could not be made: {e}") from e

        return parse_pmms_html(response.text, fetched_at=utc_now_iso())
