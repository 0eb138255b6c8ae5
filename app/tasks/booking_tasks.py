"""Periodic booking maintenance, scheduled by celery beat"""
import logging

from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.services.appointment.status_automation import StatusAutomationService

logger = logging.getLogger(__name__)


@celery_app.task
def update_booking_statuses():
    """Complete elapsed appointments and cancel unconfirmed ones"""
    db = SessionLocal()
    try:
        return StatusAutomationService.run(db)
    finally:
        db.close()


@celery_app.task
def send_due_reminders():
    """Queue reminders for appointments coming up within the lead time"""
    db = SessionLocal()
    try:
        sent = StatusAutomationService.send_due_reminders(db)
        return {"status": "success", "reminders": sent}
    finally:
        db.close()
