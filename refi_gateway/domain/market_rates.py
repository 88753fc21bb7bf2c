"""Market rate sanity checks and freshness descriptions"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from refi_gateway.domain.models import RateData
from refi_gateway.utils.date_utils import hours_since

DEFAULT_MAX_CHANGE_PTS = 3.0


@dataclass(frozen=True)
class RateCheck:
    """Outcome of comparing fresh rates with the last known good rates"""

    valid: bool
    reason: Optional[str] = None


def validate_rate_change(
    fresh: RateData,
    existing: RateData,
    max_change_pts: float = DEFAULT_MAX_CHANGE_PTS,
) -> RateCheck:
    """
    Reject a fetch whose 30yr or 15yr rate moved more than max_change_pts
    percentage points. A change exactly at the threshold is accepted.
    """
    change_30 = abs(fresh.fixed_30yr - existing.fixed_30yr)
    change_15 = abs(fresh.fixed_15yr - existing.fixed_15yr)

    if change_30 > max_change_pts or change_15 > max_change_pts:
        return RateCheck(
            valid=False,
            reason=(
                f"Rate change exceeds {max_change_pts:g}pts. "
                f"Old: {existing.fixed_30yr}%/{existing.fixed_15yr}%, "
                f"New: {fresh.fixed_30yr}%/{fresh.fixed_15yr}%"
            ),
        )

    return RateCheck(valid=True)


def age_description(fetched_at: str, now: datetime | None = None) -> str:
    """
    Human-readable age of a rate snapshot.

    Examples:
        30 minutes -> "Updated less than 1 hour ago"
        5 hours    -> "Updated 5 hours ago"
        50 hours   -> "Updated 2 days ago"
    """
    hours = math.floor(hours_since(fetched_at, now))

    if hours < 1:
        return "Updated less than 1 hour ago"
    if hours < 24:
        return f"Updated {hours} hour{'s' if hours > 1 else ''} ago"

    days = hours // 24
    return f"Updated {days} day{'s' if days > 1 else ''} ago"
