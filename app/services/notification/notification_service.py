# ============================================================================
# app/services/notification/notification_service.py
# Booking notifications: email + WhatsApp, always delivered from a worker
# ============================================================================
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models.appointment import Appointment
from app.services.email.email_service import EmailService

logger = logging.getLogger(__name__)

NOTIFICATION_KINDS = ("created", "rescheduled", "confirmed", "cancelled", "reminder", "review_request")

WHATSAPP_TEMPLATES = {
    "created": "Hi {client_name}! Your booking at {salon} is received.\n\n"
               "Date: {date}\nTime: {time}\nServices: {services}\nProfessional: {staff_name}",
    "rescheduled": "Hi {client_name}, your appointment at {salon} moved to {date} at {time}.",
    "confirmed": "Hi {client_name}, your appointment at {salon} on {date} at {time} is confirmed.",
    "cancelled": "Hi {client_name}, your appointment at {salon} on {date} at {time} was cancelled.",
    "reminder": "Hi {client_name}, see you on {date} at {time} at {salon}!",
}


class NotificationService:
    """Sends booking notifications. Dispatch never raises into the booking path."""

    @staticmethod
    def dispatch(appointment_id: UUID, kind: str) -> bool:
        """
        Queue a notification for delivery by the worker.

        Returns False (after logging) if the task could not be queued. Callers
        must not treat that as a booking failure.
        """
        try:
            from app.tasks.notification_tasks import send_booking_notification

            send_booking_notification.delay(str(appointment_id), kind)
            return True
        except Exception as exc:
            logger.error(f"Could not queue {kind} notification for appointment {appointment_id}: {exc}")
            return False

    @staticmethod
    def manage_url(appointment: Appointment) -> str:
        return f"{settings.FRONTEND_URL}/reservas/{appointment.id}?token={appointment.access_token}"

    @staticmethod
    def booking_context(appointment: Appointment) -> Dict[str, Any]:
        context = appointment.to_dict()
        context["staff_name"] = appointment.staff.display_name if appointment.staff else appointment.staff_id
        return context

    @staticmethod
    def send_whatsapp(phone: str, message: str) -> bool:
        """Send a text message through the WhatsApp Cloud API. Skipped if not configured."""
        if not settings.WHATSAPP_ACCESS_TOKEN or not settings.WHATSAPP_PHONE_NUMBER_ID:
            logger.debug("WhatsApp not configured, skipping message")
            return False

        formatted_phone = phone.replace("+", "").replace(" ", "").replace("-", "")
        url = f"{settings.WHATSAPP_API_URL}/{settings.WHATSAPP_PHONE_NUMBER_ID}/messages"

        with httpx.Client(timeout=10.0) as client:
            response = client.post(
                url,
                headers={
                    "Authorization": f"Bearer {settings.WHATSAPP_ACCESS_TOKEN}",
                    "Content-Type": "application/json",
                },
                json={
                    "messaging_product": "whatsapp",
                    "to": formatted_phone,
                    "type": "text",
                    "text": {"body": message},
                },
            )
            response.raise_for_status()

        logger.info(f"WhatsApp message sent to {formatted_phone}")
        return True

    @staticmethod
    def deliver(db: Session, appointment_id: str, kind: str) -> Dict[str, Any]:
        """
        Deliver a notification now. Runs inside the worker.

        Raises on provider errors so the task can retry.
        """
        if kind not in NOTIFICATION_KINDS:
            raise ValueError(f"Unknown notification kind: {kind}")

        appointment: Optional[Appointment] = db.query(Appointment).filter(
            Appointment.id == UUID(str(appointment_id))
        ).first()
        if not appointment:
            logger.warning(f"Notification {kind} skipped: appointment {appointment_id} not found")
            return {"status": "skipped", "reason": "appointment_not_found"}

        context = NotificationService.booking_context(appointment)
        channels = []

        if EmailService.is_configured():
            EmailService.send_booking_email(context, kind, NotificationService.manage_url(appointment))
            channels.append("email")

        template = WHATSAPP_TEMPLATES.get(kind)
        if template:
            message = template.format(
                salon=settings.EMAIL_FROM_NAME,
                services=", ".join(context["service_names"]),
                **context,
            )
            if NotificationService.send_whatsapp(appointment.client_phone, message):
                channels.append("whatsapp")

        if kind == "created" and channels:
            appointment.confirmation_sent_at = datetime.now(timezone.utc)
            db.commit()

        logger.info(f"Notification {kind} for appointment {appointment_id} delivered via {channels or 'no channel'}")
        return {"status": "success", "channels": channels}
