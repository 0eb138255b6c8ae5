# ============================================================================
# app/api/v1/admin/bookings.py
# Salon staff endpoints - JWT with admin role required
# ============================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from app.api.dependencies import booking_http_error, require_admin
from app.config.database import get_db
from app.core.exceptions import BookingError
from app.schemas.booking import (
    AppointmentResponse,
    CancelRequest,
    ConfirmRequest,
    RescheduleRequest,
)
from app.services.appointment.appointment_query_service import AppointmentQueryService
from app.services.appointment.appointment_service import AppointmentService
from app.services.appointment.status_automation import StatusAutomationService

router = APIRouter(prefix="/admin/bookings", dependencies=[Depends(require_admin)])


@router.get("")
def get_agenda(
        day: date = Query(..., alias="date", description="Agenda date (YYYY-MM-DD)"),
        staff_id: Optional[str] = Query(None, description="Only this staff member"),
        include_cancelled: bool = Query(False),
        db: Session = Depends(get_db)
):
    """Day agenda, optionally for a single staff member."""
    return AppointmentQueryService.get_day_agenda(db, day, staff_id, include_cancelled)


@router.get("/search")
def search_bookings(
        start_date: Optional[date] = Query(None, description="On or after this date"),
        end_date: Optional[date] = Query(None, description="On or before this date"),
        status: Optional[str] = Query(None, description="pending, confirmed, completed or cancelled"),
        staff_id: Optional[str] = Query(None),
        client_phone: Optional[str] = Query(None),
        skip: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=100),
        db: Session = Depends(get_db)
):
    try:
        return AppointmentQueryService.list_appointments(
            db=db,
            start_date=start_date,
            end_date=end_date,
            status=status,
            staff_id=staff_id,
            client_phone=client_phone,
            skip=skip,
            limit=limit,
        )
    except BookingError as e:
        raise booking_http_error(e)


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
def confirm_booking(
        request: Optional[ConfirmRequest] = None,
        appointment_id: str = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    try:
        appointment = AppointmentService.confirm_appointment(
            db, appointment_id, payment_reference=request.payment_reference if request else None
        )
    except BookingError as e:
        raise booking_http_error(e)

    return appointment.to_dict()


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_booking(
        appointment_id: str = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    try:
        appointment = AppointmentService.complete_appointment(db, appointment_id)
    except BookingError as e:
        raise booking_http_error(e)

    return appointment.to_dict()


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_booking(
        request: Optional[CancelRequest] = None,
        appointment_id: str = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    try:
        appointment = AppointmentService.cancel_appointment(
            db, appointment_id, None, privileged=True, reason=request.reason if request else None
        )
    except BookingError as e:
        raise booking_http_error(e)

    return appointment.to_dict()


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_booking(
        request: RescheduleRequest,
        appointment_id: str = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    """Move a booking. Goes through the same conflict checks as guests."""
    try:
        appointment = AppointmentService.reschedule_appointment(
            db, appointment_id, None, request.new_date, request.new_time, privileged=True
        )
    except BookingError as e:
        raise booking_http_error(e)

    return appointment.to_dict()


@router.post("/maintenance/run-status-update")
def run_status_update(db: Session = Depends(get_db)):
    """Run the periodic status job now instead of waiting for the scheduler."""
    return StatusAutomationService.run(db)
