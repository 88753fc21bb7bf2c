"""Data access layer for rate alerts"""

import hashlib
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import Session
from refi_gateway.infrastructure.database.models import RateAlertRecord


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_email(value: str) -> str:
    """First 12 hex chars of sha256 of the normalized value"""
    return hashlib.sha256(normalize_email(value).encode("utf-8")).hexdigest()[:12]


class AlertRepository:
    """Repository for rate alert subscriptions"""

    def __init__(self, db: Session):
        self.db = db

    def find_active_by_email(self, email: str) -> Optional[RateAlertRecord]:
        """Most recent alert for this address that is still subscribed"""
        return (
            self.db.query(RateAlertRecord)
            .filter(
                RateAlertRecord.email == normalize_email(email),
                RateAlertRecord.unsubscribed.is_(False),
            )
            .order_by(RateAlertRecord.created_at.desc())
            .first()
        )

    def create_alert(self, email: str, trigger_rate: float) -> RateAlertRecord:
        """Persist a new alert for a normalized email"""
        normalized = normalize_email(email)
        record = RateAlertRecord(
            email=normalized,
            email_hash=hash_email(normalized),
            trigger_rate=trigger_rate,
            loan_params_hash=hash_email(normalized + f"{trigger_rate:.4f}"),
            unsubscribed=False,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def get_by_token(self, token: str) -> Optional[RateAlertRecord]:
        return self.db.query(RateAlertRecord).filter(RateAlertRecord.id == token).first()

    def latest_for_email(self, email: str) -> Optional[RateAlertRecord]:
        """Most recently created alert for this address, in any state"""
        return (
            self.db.query(RateAlertRecord)
            .filter(RateAlertRecord.email == normalize_email(email))
            .order_by(RateAlertRecord.created_at.desc())
            .first()
        )

    def list_pending(self) -> List[RateAlertRecord]:
        """Alerts still subscribed and not yet notified"""
        return (
            self.db.query(RateAlertRecord)
            .filter(
                RateAlertRecord.unsubscribed.is_(False),
                RateAlertRecord.notified_at.is_(None),
            )
            .order_by(RateAlertRecord.created_at)
            .all()
        )

    def mark_notified(self, record: RateAlertRecord, when: datetime | None = None) -> None:
        record.notified_at = when or datetime.now(timezone.utc)
        self.db.flush()
