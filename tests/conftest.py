"""
Shared fixtures.

The app builds its engine from DATABASE_URL at import time, so the test
environment is set up here before anything under ``app`` is imported.
"""
import os
import tempfile
from datetime import date, timedelta
from unittest.mock import patch

_TEST_DIR = tempfile.mkdtemp(prefix="salon-booking-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'booking.db')}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["EMAIL_HOST"] = ""
os.environ["WHATSAPP_ACCESS_TOKEN"] = ""
os.environ["SALON_TIMEZONE"] = "America/Cancun"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.dependencies import create_access_token  # noqa: E402
from app.config.database import SessionLocal, engine  # noqa: E402
from app.models import Base  # noqa: E402
from app.scripts.seed_salon import seed_salon  # noqa: E402
from app.services.appointment.appointment_service import AppointmentService  # noqa: E402
from app.services.notification.notification_service import NotificationService  # noqa: E402

# 2030-01-06 is a Sunday. SALON_DAY[n] is the salon weekday n of that week (0=Sunday).
SUNDAY = date(2030, 1, 6)
SALON_DAY = {weekday: SUNDAY + timedelta(days=weekday) for weekday in range(7)}
MONDAY = SALON_DAY[1]
TUESDAY = SALON_DAY[2]
WEDNESDAY = SALON_DAY[3]
SATURDAY = SALON_DAY[6]


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from an empty schema with the salon's staff and catalog"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        seed_salon(session)
    finally:
        session.close()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def dispatched(request):
    """Record notification dispatches instead of queueing Celery tasks"""
    if request.node.get_closest_marker("real_dispatch"):
        yield None
        return

    with patch.object(NotificationService, "dispatch", return_value=True) as mock_dispatch:
        yield mock_dispatch


@pytest.fixture
def client():
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "lily", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


def booking_payload(**overrides):
    payload = {
        "client_name": "María González",
        "client_email": "Maria@Example.com",
        "client_phone": "+52 998 123 4567",
        "staff_id": "ana",
        "booking_date": MONDAY.isoformat(),
        "booking_time": "10:00",
        "service_ids": ["mani-classic"],
        "service_names": ["Manicura Clásica"],
        "total_duration": 45,
        "total_price": 350,
        "customizations": None,
    }
    payload.update(overrides)
    return payload


def make_appointment(db, **overrides):
    """Create an appointment through the service with sensible defaults"""
    data = booking_payload(**overrides)
    return AppointmentService.create_appointment(
        db=db,
        client_name=data["client_name"],
        client_email=data["client_email"],
        client_phone=data["client_phone"],
        staff_id=data["staff_id"],
        appointment_date=data["booking_date"],
        start_time=data["booking_time"],
        service_ids=data["service_ids"],
        service_names=data["service_names"],
        duration_minutes=data["total_duration"],
        total_price=data["total_price"],
        customizations=data["customizations"],
    )
