# ============================================================================
# app/api/v1/public/bookings.py
# Guest booking endpoints - thin HTTP layer, no authentication
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session

from app.api.dependencies import booking_http_error, booking_rate_limit
from app.config.database import get_db
from app.core.exceptions import BookingError
from app.schemas.booking import (
    AppointmentCreatedResponse,
    AppointmentResponse,
    AppointmentStatusResponse,
    AvailableSlotsResponse,
    CreateAppointmentRequest,
    ModifyAppointmentRequest,
    QuoteRequest,
    QuoteResponse,
)
from app.services.appointment.appointment_service import AppointmentService
from app.services.availability.availability_service import AvailabilityService
from app.services.catalog.catalog_service import CatalogService

router = APIRouter()


@router.get("/availability", response_model=AvailableSlotsResponse)
def get_availability(
        staff_id: str = Query(..., description="Staff member id"),
        date: str = Query(..., description="Date as YYYY-MM-DD"),
        duration_minutes: int = Query(..., description="Total service duration in minutes"),
        db: Session = Depends(get_db)
):
    """
    Free start times for a staff member on a date.
    Display only: the booking call re-checks the slot.
    """
    try:
        slots = AvailabilityService.get_available_slots(db, staff_id, date, duration_minutes)
    except BookingError as e:
        raise booking_http_error(e)

    return {"slots": slots}


@router.post(
    "/bookings",
    response_model=AppointmentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_rate_limit)],
)
def create_booking(
        request: CreateAppointmentRequest,
        db: Session = Depends(get_db)
):
    """
    Book a slot. Answers 409 BOOKING_CONFLICT if someone else took it first.
    The returned access_token is the only way for the guest to manage the booking.
    """
    try:
        appointment = AppointmentService.create_appointment(
            db=db,
            client_name=request.client_name,
            client_email=request.client_email,
            client_phone=request.client_phone,
            staff_id=request.staff_id,
            appointment_date=request.booking_date,
            start_time=request.booking_time,
            service_ids=request.service_ids,
            service_names=request.service_names,
            duration_minutes=request.total_duration,
            total_price=request.total_price,
            customizations=request.customizations,
        )
    except BookingError as e:
        raise booking_http_error(e)

    return {
        "appointment_id": appointment.id,
        "access_token": appointment.access_token,
        "status": appointment.status.value,
    }


@router.get("/bookings/{appointment_id}", response_model=AppointmentResponse)
def get_booking(
        appointment_id: str = Path(..., description="The appointment ID"),
        access_token: str = Query(..., description="Access token issued at booking time"),
        db: Session = Depends(get_db)
):
    """Booking details for the guest's manage page."""
    try:
        appointment = AppointmentService.get_appointment(db, appointment_id, access_token)
    except BookingError as e:
        raise booking_http_error(e)

    return appointment.to_dict()


@router.post("/bookings/{appointment_id}/manage", response_model=AppointmentStatusResponse)
def manage_booking(
        request: ModifyAppointmentRequest,
        appointment_id: str = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    """Cancel or reschedule a booking with its access token."""
    try:
        appointment = AppointmentService.modify_appointment(
            db=db,
            appointment_id=appointment_id,
            access_token=request.access_token,
            action=request.action,
            new_date=request.new_date,
            new_time=request.new_time,
        )
    except BookingError as e:
        raise booking_http_error(e)

    return {"appointment_id": appointment.id, "status": appointment.status.value}


@router.post("/quote", response_model=QuoteResponse)
def quote(
        request: QuoteRequest,
        db: Session = Depends(get_db)
):
    """Total duration and price of a selection of services."""
    try:
        return CatalogService.quote(db, request.service_ids, request.quantities)
    except BookingError as e:
        raise booking_http_error(e)


@router.get("/services")
def list_services(
        category: str = Query(None, description="Filter by category"),
        db: Session = Depends(get_db)
):
    """Active services of the catalog."""
    services = CatalogService.list_services(db, category)
    return {"services": [service.to_dict() for service in services]}
