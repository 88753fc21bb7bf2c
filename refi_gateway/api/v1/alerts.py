"""Rate alert subscription endpoints"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from refi_gateway.api.v1.schemas import (
    RateAlertRequest,
    RateAlertResponse,
    UnsubscribeRequest,
    UnsubscribeResponse,
)
from refi_gateway.domain.exceptions import AlertNotFoundError, InvalidAlertError
from refi_gateway.infrastructure.database.session import get_db
from refi_gateway.infrastructure.database.repositories import AlertRepository

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/rate-alert", response_model=RateAlertResponse)
def subscribe_rate_alert(request_body: RateAlertRequest, db: Session = Depends(get_db)):
    """
    Subscribe an email to a one-time alert at the trigger rate.

    An address with a subscribed alert gets its trigger updated instead of a duplicate.
    """
    repo = AlertRepository(db)

    existing = repo.find_active_by_email(request_body.email)
    if existing:
        existing.trigger_rate = request_body.trigger_rate
        db.commit()
        logger.info("Rate alert updated", extra={"step": "rate_alert", "email_hash": existing.email_hash})
        return RateAlertResponse(updated=True)

    record = repo.create_alert(request_body.email, request_body.trigger_rate)
    db.commit()
    logger.info("Rate alert created", extra={"step": "rate_alert", "email_hash": record.email_hash})
    return RateAlertResponse(created=True)


def apply_unsubscribe(repo: AlertRepository, request_body: UnsubscribeRequest) -> bool:
    """
    Unsubscribe by token, or re-enable the most recent alert for an email.

    Returns:
        The alert's new unsubscribed state

    Raises:
        InvalidAlertError: Neither token nor email supplied
        AlertNotFoundError: No matching alert
    """
    if not request_body.token and not request_body.email:
        raise InvalidAlertError("token or email required")

    if request_body.token:
        record = repo.get_by_token(request_body.token)
    else:
        record = repo.latest_for_email(request_body.email)

    if record is None:
        raise AlertNotFoundError("Alert not found")

    if request_body.resubscribe:
        record.unsubscribed = False
        record.notified_at = None  # allow re-notification
    else:
        record.unsubscribed = True

    return record.unsubscribed


@router.post("/unsubscribe", response_model=UnsubscribeResponse)
def unsubscribe(request_body: UnsubscribeRequest, db: Session = Depends(get_db)):
    repo = AlertRepository(db)

    try:
        unsubscribed = apply_unsubscribe(repo, request_body)
        db.commit()
    except InvalidAlertError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(e))
    except AlertNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    return UnsubscribeResponse(unsubscribed=unsubscribed)
