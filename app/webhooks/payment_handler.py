# app/webhooks/payment_handler.py
"""Payment provider webhook: a completed checkout confirms the booking"""
import hashlib
import hmac
import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.settings import get_settings
from app.core.exceptions import BookingError, NotFoundError, StoreUnavailableError
from app.services.appointment.appointment_service import AppointmentService

router = APIRouter()
logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Constant-time check of a hex HMAC-SHA256 signature"""
    if not secret or not signature:
        return False
    return hmac.compare_digest(compute_signature(payload, secret), signature)


@router.post("/payments")
async def handle_payment_event(
        request: Request,
        x_signature: str = Header(None, alias="X-Signature"),
        db: Session = Depends(get_db)
):
    """
    Confirm the booking referenced by ``metadata.booking_id`` once its
    checkout completes. Other events are acknowledged and ignored.
    """
    payload = await request.body()
    if not verify_signature(payload, x_signature, get_settings().PAYMENT_WEBHOOK_SECRET):
        logger.warning("Rejected payment webhook with invalid signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event payload must be a JSON object")

    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED:
        logger.info(f"Ignoring payment event {event_type}")
        return {"received": True, "handled": False}

    session = (event.get("data") or {}).get("object") or {}
    booking_id = (session.get("metadata") or {}).get("booking_id")
    if not booking_id:
        logger.warning("Checkout completed without booking_id metadata")
        return {"received": True, "handled": False}

    try:
        AppointmentService.confirm_appointment(db, booking_id, payment_reference=session.get("id"))
    except NotFoundError:
        logger.error(f"Payment received for unknown booking {booking_id}")
        return {"received": True, "handled": False}
    except StoreUnavailableError as e:
        # Not acknowledged, so the provider redelivers the event
        logger.error(f"Payment for booking {booking_id} not applied, store unavailable: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except BookingError as e:
        # Acknowledge so the provider stops retrying; staff resolve it by hand
        logger.error(f"Payment for booking {booking_id} could not confirm it: {e.message}")
        return {"received": True, "handled": False, "error": e.code}

    logger.info(f"Booking {booking_id} confirmed by payment {session.get('id')}")
    return {"received": True, "handled": True}
