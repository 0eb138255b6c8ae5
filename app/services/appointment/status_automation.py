# ============================================================================
# app/services/appointment/status_automation.py
# Time-based status policy, run periodically by the worker
# ============================================================================
"""
Periodic appointment housekeeping:

1. Appointments still open ``AUTO_COMPLETE_AFTER_HOURS`` after their start are
   completed. A pending one is confirmed first, so it walks
   pending -> confirmed -> completed through the normal transition table.
2. Pending appointments starting within ``UNCONFIRMED_CANCEL_HOURS`` are
   cancelled as unconfirmed.
3. Reminders go out ``REMINDER_LEAD_HOURS`` ahead of the start.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.config.database import begin_write
from app.config.settings import get_settings
from app.models.appointment import Appointment, AppointmentStatus
from app.services.appointment.state_machine import transition
from app.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)


def appointment_start(appointment: Appointment, tz: ZoneInfo) -> datetime:
    """Aware start datetime of an appointment in the salon's timezone"""
    naive = datetime.combine(
        appointment.appointment_date,
        time(appointment.start_minute // 60, appointment.start_minute % 60),
    )
    return naive.replace(tzinfo=tz)


class StatusAutomationService:
    """Applies the time-based status policy through the transition table"""

    @staticmethod
    def _salon_tz() -> ZoneInfo:
        return ZoneInfo(get_settings().SALON_TIMEZONE)

    @staticmethod
    def _open_appointments(
            db: Session,
            statuses: List[AppointmentStatus],
            until_date: date,
            from_date: Optional[date] = None
    ) -> List[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.status.in_(statuses),
            Appointment.appointment_date <= until_date,
        )
        if from_date is not None:
            query = query.filter(Appointment.appointment_date >= from_date)
        return query.order_by(Appointment.appointment_date, Appointment.start_minute).all()

    @staticmethod
    def complete_elapsed(db: Session, now: datetime) -> List[Appointment]:
        settings = get_settings()
        tz = StatusAutomationService._salon_tz()
        local_now = now.astimezone(tz)
        grace = timedelta(hours=settings.AUTO_COMPLETE_AFTER_HOURS)

        completed = []
        candidates = StatusAutomationService._open_appointments(
            db, [AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED], local_now.date()
        )
        for appointment in candidates:
            if local_now < appointment_start(appointment, tz) + grace:
                continue

            if appointment.status == AppointmentStatus.PENDING:
                appointment.status = transition(appointment.status, AppointmentStatus.CONFIRMED)
                appointment.confirmed_at = now
            appointment.status = transition(appointment.status, AppointmentStatus.COMPLETED)
            appointment.completed_at = now
            completed.append(appointment)

        return completed

    @staticmethod
    def cancel_unconfirmed(db: Session, now: datetime) -> List[Appointment]:
        settings = get_settings()
        tz = StatusAutomationService._salon_tz()
        local_now = now.astimezone(tz)
        window = timedelta(hours=settings.UNCONFIRMED_CANCEL_HOURS)

        cancelled = []
        candidates = StatusAutomationService._open_appointments(
            db, [AppointmentStatus.PENDING], (local_now + window).date(), from_date=local_now.date()
        )
        for appointment in candidates:
            # completed earlier in this run, not yet visible to the query
            if appointment.status != AppointmentStatus.PENDING:
                continue
            if local_now < appointment_start(appointment, tz) - window:
                continue

            appointment.status = transition(appointment.status, AppointmentStatus.CANCELLED)
            appointment.cancelled_at = now
            appointment.cancellation_reason = "unconfirmed"
            cancelled.append(appointment)

        return cancelled

    @staticmethod
    def run(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Complete elapsed appointments, then cancel unconfirmed ones.

        Both steps commit together. Notifications are queued afterwards.
        """
        now = now or datetime.now(timezone.utc)
        try:
            begin_write(db)
            completed = StatusAutomationService.complete_elapsed(db, now)
            db.flush()
            cancelled = StatusAutomationService.cancel_unconfirmed(db, now)
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.error(f"Status automation failed: {exc}")
            raise

        for appointment in completed:
            NotificationService.dispatch(appointment.id, "review_request")
        for appointment in cancelled:
            NotificationService.dispatch(appointment.id, "cancelled")

        logger.info(
            f"Status update finished: {len(completed)} completed, {len(cancelled)} cancelled"
        )
        return {"completed": len(completed), "cancelled": len(cancelled)}

    @staticmethod
    def send_due_reminders(db: Session, now: Optional[datetime] = None) -> int:
        """Queue reminders for appointments starting within the reminder lead time"""
        now = now or datetime.now(timezone.utc)
        settings = get_settings()
        tz = StatusAutomationService._salon_tz()
        local_now = now.astimezone(tz)
        lead = timedelta(hours=settings.REMINDER_LEAD_HOURS)

        begin_write(db)
        candidates = StatusAutomationService._open_appointments(
            db,
            [AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED],
            (local_now + lead).date(),
            from_date=local_now.date(),
        )
        due = [
            appointment for appointment in candidates
            if appointment.reminder_sent_at is None
            and local_now <= appointment_start(appointment, tz) <= local_now + lead
        ]
        for appointment in due:
            appointment.reminder_sent_at = now
        db.commit()

        for appointment in due:
            NotificationService.dispatch(appointment.id, "reminder")

        logger.info(f"Queued {len(due)} reminders")
        return len(due)
