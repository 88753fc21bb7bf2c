"""Last known good market rates, persisted as JSON on disk"""

import json
from pathlib import Path
from typing import Optional
from refi_gateway.config import settings
from refi_gateway.domain.models import RateData


class RateStore:
    """Reads and writes the rate snapshot file used as the fallback"""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.rates_file)

    def load(self) -> Optional[RateData]:
        """Return the stored snapshot, or None when the file is missing or unreadable"""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return RateData.from_dict(data)
        except FileNotFoundError:
            return None
        except (ValueError, KeyError, TypeError):
            return None

    def save(self, rates: RateData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(rates.to_dict(), indent=2) + "\n", encoding="utf-8")


# Shipped snapshot used when no rate file has been written yet
BUNDLED_RATES = RateData(fetched_at="2026-10-15T16:00:00.000Z", fixed_30yr=6.3, fixed_15yr=5.49)


def load_fallback_rates(store: RateStore | None = None) -> RateData:
    """Last known good rates on disk, or the bundled snapshot"""
    return (store or RateStore()).load() or BUNDLED_RATES
