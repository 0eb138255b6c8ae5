import logging

from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_booking_notification(self, appointment_id: str, kind: str):
    """
    Deliver a booking notification (email and WhatsApp)

    Args:
        appointment_id: Appointment UUID as a string
        kind: created, rescheduled, confirmed, cancelled, reminder or review_request
    """
    db = SessionLocal()
    try:
        logger.info(f"Sending {kind} notification for appointment {appointment_id}")
        return NotificationService.deliver(db, appointment_id, kind)

    except ValueError:
        # Unknown kind or malformed id, retrying will not help
        logger.error(f"Dropping {kind} notification for appointment {appointment_id}")
        raise

    except Exception as exc:
        logger.error(f"Failed to send {kind} notification for appointment {appointment_id}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )

    finally:
        db.close()
