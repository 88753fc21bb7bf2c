"""Weekly job: email subscribers whose trigger rate has been reached"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List
from sqlalchemy.orm import Session
from refi_gateway.config import settings
from refi_gateway.domain.models import RateData
from refi_gateway.infrastructure.clients.email import EmailClient, build_alert_html, build_alert_subject
from refi_gateway.infrastructure.database.models import RateAlertRecord
from refi_gateway.infrastructure.database.repositories import AlertRepository
from refi_gateway.infrastructure.database.session import SessionLocal, init_db
from refi_gateway.infrastructure.observability.logging import setup_logging
from refi_gateway.infrastructure.observability.metrics import alert_notification_counter
from refi_gateway.infrastructure.rate_store import RateStore
from refi_gateway.utils.date_utils import hours_since

logger = logging.getLogger(__name__)

# Pause between sends to stay under the provider's rate limit
SEND_INTERVAL_SECONDS = 0.25


@dataclass
class AlertRunSummary:
    eligible: int = 0
    sent: int = 0
    failed: int = 0


def eligible_alerts(pending: List[RateAlertRecord], current_rate_30yr: float) -> List[RateAlertRecord]:
    """Alerts whose trigger is at or above the current 30yr rate (decimals)"""
    return [alert for alert in pending if current_rate_30yr <= alert.trigger_rate]


async def notify_alerts(
    db: Session,
    rates: RateData,
    email_client: EmailClient,
    base_url: str,
    send_interval: float = SEND_INTERVAL_SECONDS,
) -> AlertRunSummary:
    """
    Send every eligible alert and stamp notified_at on success.

    Each stamp is committed as soon as its email is sent, so an alert that was
    delivered is never emailed again even if a later send aborts the run.
    """
    repo = AlertRepository(db)
    current_rate = rates.fixed_30yr / 100

    pending = repo.list_pending()
    eligible = eligible_alerts(pending, current_rate)
    summary = AlertRunSummary(eligible=len(eligible))

    logger.info(
        "Checking rate alerts",
        extra={
            "step": "check_alerts",
            "current_rate_30yr": current_rate,
            "pending": len(pending),
            "eligible": len(eligible),
            "dry_run": email_client.dry_run,
        },
    )

    for alert in eligible:
        ok = await email_client.send(
            to=alert.email,
            subject=build_alert_subject(current_rate),
            html=build_alert_html(alert.id, alert.trigger_rate, current_rate, base_url),
        )

        if ok:
            repo.mark_notified(alert, datetime.now(timezone.utc))
            db.commit()
            summary.sent += 1
            alert_notification_counter.labels(outcome="dry_run" if email_client.dry_run else "sent").inc()
        else:
            summary.failed += 1
            alert_notification_counter.labels(outcome="failed").inc()
            logger.error("Alert email failed", extra={"step": "check_alerts", "email_hash": alert.email_hash})

        if send_interval:
            await asyncio.sleep(send_interval)

    db.commit()
    return summary


def main(
    store: RateStore | None = None,
    email_client: EmailClient | None = None,
    session_factory=SessionLocal,
    send_interval: float = SEND_INTERVAL_SECONDS,
) -> int:
    """Returns the process exit code: 1 when rates are missing or any send failed"""
    store = store or RateStore()
    email_client = email_client or EmailClient()

    rates = store.load()
    if rates is None:
        logger.error("Could not load rate file, run fetch_rates first", extra={"step": "check_alerts", "path": str(store.path)})
        return 1

    age_days = hours_since(rates.fetched_at) / 24
    if age_days > settings.stale_rates_days:
        logger.warning(
            "Rate data is stale, consider running fetch_rates first",
            extra={"step": "check_alerts", "age_days": round(age_days), "fetched_at": rates.fetched_at},
        )

    db = session_factory()
    try:
        summary = asyncio.run(notify_alerts(db, rates, email_client, settings.base_url, send_interval))
    finally:
        db.close()

    logger.info(
        "Alert run complete",
        extra={"step": "check_alerts", "sent": summary.sent, "failed": summary.failed},
    )
    return 1 if summary.failed else 0


def run() -> None:
    setup_logging(settings.log_level)
    init_db()
    sys.exit(main())


if __name__ == "__main__":
    run()
