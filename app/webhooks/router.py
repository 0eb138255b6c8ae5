# app/webhooks/router.py
"""Inbound provider webhooks, mounted under /webhooks"""
from fastapi import APIRouter

from app.webhooks import payment_handler

webhook_router = APIRouter()
webhook_router.include_router(payment_handler.router)


@webhook_router.get("/")
async def webhook_info():
    return {
        "endpoints": {"payments": "POST /webhooks/payments"},
        "signature": "X-Signature header: hex HMAC-SHA256 of the raw body with the shared secret",
    }
