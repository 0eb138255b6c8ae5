"""Input validation and sanitation for booking requests"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from app.core.exceptions import BookingValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")
MAX_NOTES_LENGTH = 500


def normalize_client_name(name: Any) -> str:
    """Trim and check length (2-100 characters)"""
    if not name or not isinstance(name, str):
        raise BookingValidationError("client_name is required", field="client_name")
    name = name.strip()
    if len(name) < 2 or len(name) > 100:
        raise BookingValidationError("client_name must be between 2 and 100 characters", field="client_name")
    return name


def normalize_email(email: Any) -> str:
    """Trim, lower-case and validate an email address"""
    if not email or not isinstance(email, str):
        raise BookingValidationError("client_email is required", field="client_email")
    email = email.strip().lower()
    if len(email) > 255 or not EMAIL_PATTERN.match(email):
        raise BookingValidationError(
            "client_email must be a valid email address (max 255 characters)", field="client_email"
        )
    return email


def normalize_phone(phone: Any) -> str:
    """
    Strip spaces and dashes from a phone number.

    Raises:
        BookingValidationError: unless 10-15 digits remain, with an optional leading +
    """
    if not phone or not isinstance(phone, str):
        raise BookingValidationError("client_phone is required", field="client_phone")
    cleaned = re.sub(r"[\s-]", "", phone)
    if not PHONE_PATTERN.match(cleaned):
        raise BookingValidationError(
            "client_phone must be a valid phone number (10-15 digits)", field="client_phone"
        )
    return cleaned


def normalize_service_list(values: Any, field_name: str) -> List[str]:
    if not isinstance(values, (list, tuple)) or not values:
        raise BookingValidationError(f"{field_name} is required and must be a non-empty list", field=field_name)
    cleaned = [str(v).strip() for v in values]
    if any(not v for v in cleaned):
        raise BookingValidationError(f"{field_name} must not contain empty values", field=field_name)
    return cleaned


def normalize_price(price: Any) -> Decimal:
    if isinstance(price, bool) or price is None:
        raise BookingValidationError("total_price must be a non-negative number", field="total_price")
    try:
        value = Decimal(str(price))
    except InvalidOperation:
        raise BookingValidationError("total_price must be a non-negative number", field="total_price")
    if not value.is_finite() or value < 0:
        raise BookingValidationError("total_price must be a non-negative number", field="total_price")
    return value.quantize(Decimal("0.01"))


def normalize_duration(duration: Any) -> int:
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise BookingValidationError("total_duration must be a positive number of minutes", field="total_duration")
    return duration


def _normalize_notes(notes: Any) -> str:
    if not isinstance(notes, str):
        raise BookingValidationError("customization notes must be text", field="customizations")
    if len(notes) > MAX_NOTES_LENGTH:
        raise BookingValidationError(
            f"customization notes must not exceed {MAX_NOTES_LENGTH} characters", field="customizations"
        )
    return notes.strip()


def normalize_customizations(customizations: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Customizations are opaque except for free-text notes, which are trimmed
    and capped at MAX_NOTES_LENGTH. Notes may sit at the top level or inside
    a per-service entry ({"nail-art": {"quantity": 3, "notes": "..."}}).
    """
    if customizations is None:
        return None
    if not isinstance(customizations, dict):
        raise BookingValidationError("customizations must be an object", field="customizations")

    cleaned = {}
    for key, value in customizations.items():
        if key == "notes" and value is not None:
            cleaned[key] = _normalize_notes(value)
        elif isinstance(value, dict) and value.get("notes") is not None:
            cleaned[key] = {**value, "notes": _normalize_notes(value["notes"])}
        else:
            cleaned[key] = value
    return cleaned
