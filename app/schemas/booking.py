"""
Pydantic schemas for the public booking API

Request models only check the shape of the payload. Business rules (name
length, phone format, opening hours, ...) are enforced by the services so
the HTTP API and direct callers share one set of checks.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Request Schemas
# ============================================================================

class CreateAppointmentRequest(BaseModel):
    """Payload of POST /public/bookings"""
    client_name: str
    client_email: str
    client_phone: str
    staff_id: str
    booking_date: str = Field(..., description="YYYY-MM-DD, salon local date")
    booking_time: str = Field(..., description="HH:MM, salon local time")
    service_ids: List[str]
    service_names: List[str]
    total_duration: int = Field(..., description="Duration in minutes")
    total_price: Decimal
    customizations: Optional[Dict[str, Any]] = None


class ModifyAppointmentRequest(BaseModel):
    """Payload of POST /public/bookings/{id}/manage"""
    access_token: str
    action: str = Field(..., description="cancel or reschedule")
    new_date: Optional[str] = None
    new_time: Optional[str] = None


class RescheduleRequest(BaseModel):
    new_date: str
    new_time: str


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)


class ConfirmRequest(BaseModel):
    payment_reference: Optional[str] = Field(None, max_length=255)


class QuoteRequest(BaseModel):
    """Payload of POST /public/quote"""
    service_ids: List[str]
    quantities: Dict[str, int] = Field(default_factory=dict)

    @field_validator('quantities')
    @classmethod
    def validate_quantities(cls, v):
        for service_id, quantity in v.items():
            if quantity < 1:
                raise ValueError(f'Quantity for {service_id} must be at least 1')
        return v


# ============================================================================
# Response Schemas
# ============================================================================

class AvailableSlotsResponse(BaseModel):
    slots: List[str]


class AppointmentCreatedResponse(BaseModel):
    appointment_id: UUID
    access_token: str
    status: str


class AppointmentStatusResponse(BaseModel):
    appointment_id: UUID
    status: str


class AppointmentResponse(BaseModel):
    """Booking details shown to the guest (never includes the access token)"""
    id: UUID
    staff_id: str
    client_name: str
    client_email: str
    client_phone: str
    date: date
    time: str
    duration_minutes: int
    service_ids: List[str]
    service_names: List[str]
    total_price: float
    customizations: Optional[Dict[str, Any]] = None
    status: Literal["pending", "confirmed", "completed", "cancelled"]


class QuoteLine(BaseModel):
    service_id: str
    name: str
    quantity: int
    duration: int
    price: float


class QuoteResponse(BaseModel):
    service_ids: List[str]
    service_names: List[str]
    total_duration: int
    total_price: float
    lines: List[QuoteLine]
