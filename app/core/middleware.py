# app/core/middleware.py
"""HTTP middleware: request tracing and access logging"""
import logging
import time
import uuid

from starlette.requests import Request

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Probed every few seconds by the load balancer
QUIET_PATHS = ("/health",)


async def correlation_id_middleware(request: Request, call_next):
    """Reuse the caller's correlation id or mint one, and echo it back"""
    correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    path = request.url.path
    if path.startswith(QUIET_PATHS):
        return await call_next(request)

    correlation_id = getattr(request.state, "correlation_id", None)
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            f"{request.method} {path} failed",
            extra={"correlation_id": correlation_id, "method": request.method, "path": path},
        )
        raise

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    log = logger.warning if response.status_code >= 500 else logger.info
    log(
        f"{request.method} {path} -> {response.status_code} ({elapsed_ms} ms)",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
        },
    )
    return response
