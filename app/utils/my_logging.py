# app/utils/my_logging.py
"""Logging setup shared by the API process and the Celery worker"""
import logging
import sys

from app.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries whose INFO output drowns the booking logs
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic",
    "httpx",
    "httpcore",
    "celery",
    "kombu",
    "uvicorn.access",
)


def setup_logging(verbose=True):
    """
    Send application logs to stdout at LOG_LEVEL.

    With ``verbose=False`` (scripts, one-off maintenance) only warnings are
    shown and third-party loggers are limited to errors.
    """
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO) if verbose else logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])

    third_party_level = logging.WARNING if verbose else logging.ERROR
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)
