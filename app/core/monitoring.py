"""Health endpoints for load balancers and the on-call dashboard"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, text
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.redis import get_redis
from app.models.service import Service
from app.models.staff import StaffMember

health_router = APIRouter()
logger = logging.getLogger(__name__)

SERVICE_NAME = "salon-booking-api"


@health_router.get("/")
async def health_check():
    """Liveness: the process answers"""
    return {"status": "healthy", "service": SERVICE_NAME}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Readiness of the booking path.

    The database is required. Redis only backs the rate limiter, which fails
    open, so a Redis outage reports ``degraded`` rather than ``unhealthy``.
    """
    checks = {"api": "healthy", "database": "unknown", "catalog": "unknown", "redis": "unknown"}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {e}"

    if checks["database"] == "healthy":
        staff = db.query(func.count(StaffMember.id)).filter(StaffMember.is_active.is_(True)).scalar()
        services = db.query(func.count(Service.id)).filter(Service.is_active.is_(True)).scalar()
        checks["catalog"] = "healthy" if staff and services else "empty"

    try:
        redis_client = await get_redis()
        await redis_client.ping()
        checks["redis"] = "healthy"
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        checks["redis"] = f"unhealthy: {e}"

    if checks["database"] != "healthy":
        overall = "unhealthy"
    elif checks["redis"] != "healthy" or checks["catalog"] != "healthy":
        overall = "degraded"
    else:
        overall = "healthy"
    checks["overall"] = overall

    return checks
