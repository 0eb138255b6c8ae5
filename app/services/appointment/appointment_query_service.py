# ============================================================================
# app/services/appointment/appointment_query_service.py
# Read-only appointment queries for the staff agenda
# ============================================================================
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional, Dict, Any

from app.core.exceptions import BookingValidationError
from app.models.appointment import Appointment, AppointmentStatus


class AppointmentQueryService:
    """Read side of the booking store. Never writes."""

    @staticmethod
    def get_day_agenda(
            db: Session,
            day: date,
            staff_id: Optional[str] = None,
            include_cancelled: bool = False
    ) -> Dict[str, Any]:
        """All appointments of a day, ordered by staff and start time."""
        query = db.query(Appointment).filter(Appointment.appointment_date == day)

        if staff_id:
            query = query.filter(Appointment.staff_id == staff_id)
        if not include_cancelled:
            query = query.filter(Appointment.status != AppointmentStatus.CANCELLED)

        appointments = query.order_by(Appointment.staff_id.asc(), Appointment.start_minute.asc()).all()

        return {
            "date": day.isoformat(),
            "staff_id": staff_id,
            "total_appointments": len(appointments),
            "appointments": [appt.to_dict() for appt in appointments]
        }

    @staticmethod
    def list_appointments(
            db: Session,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            status: Optional[str] = None,
            staff_id: Optional[str] = None,
            client_phone: Optional[str] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Paginated list of appointments with filters."""
        query = db.query(Appointment)

        if start_date:
            query = query.filter(Appointment.appointment_date >= start_date)
        if end_date:
            query = query.filter(Appointment.appointment_date <= end_date)
        if status:
            try:
                query = query.filter(Appointment.status == AppointmentStatus(status))
            except ValueError:
                raise BookingValidationError(f"Unknown status: {status}", field="status")
        if staff_id:
            query = query.filter(Appointment.staff_id == staff_id)
        if client_phone:
            query = query.filter(Appointment.client_phone == client_phone)

        query = query.order_by(Appointment.appointment_date.asc(), Appointment.start_minute.asc())
        total = query.count()
        appointments = query.offset(skip).limit(limit).all()

        return {
            "total_appointments": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "appointments": [appt.to_dict() for appt in appointments]
        }
