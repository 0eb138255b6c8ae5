# app/schemas/__init__.py
from .booking import (
    CreateAppointmentRequest,
    ModifyAppointmentRequest,
    RescheduleRequest,
    CancelRequest,
    ConfirmRequest,
    QuoteRequest,
    AvailableSlotsResponse,
    AppointmentCreatedResponse,
    AppointmentStatusResponse,
    AppointmentResponse,
    QuoteLine,
    QuoteResponse
)
