"""SQLAlchemy ORM models for persisted rate alerts"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, Float, DateTime, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateAlertRecord(Base):
    """Email subscription that fires once when the 30yr rate reaches the trigger"""

    __tablename__ = "rate_alert"

    # Doubles as the unsubscribe token
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(Text, nullable=False, index=True)
    email_hash = Column(String(12), nullable=False)
    trigger_rate = Column(Float, nullable=False)  # decimal, e.g. 0.0575
    loan_params_hash = Column(String(12), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    notified_at = Column(DateTime(timezone=True), nullable=True)
    unsubscribed = Column(Boolean, nullable=False, default=False)
