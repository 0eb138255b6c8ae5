# ============================================================================
# FILE: app/api/dependencies.py
# Admin JWT authentication, booking error mapping and rate limiting
# ============================================================================
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from redis.exceptions import RedisError
import logging
import time

from app.config.redis import get_redis, RedisKeys
from app.config.settings import settings
from app.core.exceptions import BookingError

logger = logging.getLogger(__name__)

# ============================================================================
# Security Schemes
# ============================================================================

# JWT security for staff/admin authentication
jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token"
)

ADMIN_ROLE = "admin"


# ============================================================================
# Error mapping
# ============================================================================

def booking_http_error(exc: BookingError) -> HTTPException:
    """
    Translate a service-layer BookingError into an HTTPException.

    Usage in routes:
        except BookingError as e:
            raise booking_http_error(e)
    """
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())


# ============================================================================
# JWT Token Functions
# ============================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary with claims (should include 'sub' and 'role')
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access"
    })

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


# ============================================================================
# JWT Authentication Dependencies
# ============================================================================

async def get_token_payload(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security)
) -> dict:
    """Decoded claims of the bearer token"""
    payload = verify_access_token(credentials.credentials)

    if payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


async def require_admin(payload: dict = Depends(get_token_payload)) -> dict:
    """
    Dependency that requires a salon admin token.

    Usage in routes:
        @router.post("/admin/bookings/{id}/confirm")
        async def confirm(admin: dict = Depends(require_admin)):
            pass
    """
    if payload.get("role") != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return payload


# ============================================================================
# Rate limiting
# ============================================================================

def get_client_ip(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop set by the proxy"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def booking_rate_limit(request: Request) -> None:
    """
    Fixed-window limit on booking creation per client IP.

    Fails open: if Redis is unreachable the request goes through.
    """
    if not settings.RATE_LIMIT_ENABLED:
        return

    client_ip = get_client_ip(request)
    window_seconds = settings.BOOKING_RATE_WINDOW_SECONDS
    window = int(time.time()) // window_seconds
    key = RedisKeys.RATE_LIMIT_BOOKING.format(client_ip=client_ip, window=window)

    try:
        redis_client = await get_redis()
        count = await redis_client.incr(key)
        if count == 1:
            await redis_client.expire(key, window_seconds)
    except (RedisError, OSError) as e:
        logger.warning(f"Rate limit check skipped, Redis unavailable: {e}")
        return

    if count > settings.BOOKING_RATE_LIMIT:
        retry_after = window_seconds - int(time.time()) % window_seconds
        logger.info(f"Booking rate limit exceeded for {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "Too many booking attempts. Please try again later.",
                "code": "RATE_LIMITED",
            },
            headers={"Retry-After": str(retry_after)},
        )
