"""
API v1 router setup
Organized into: public (guest booking) and admin (JWT) routes
"""
from fastapi import APIRouter

from app.api.v1.public import bookings as public_bookings
from app.api.v1.admin import bookings as admin_bookings

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required, guests use access tokens)
# ============================================================================
api_v1_router.include_router(
    public_bookings.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# ADMIN ROUTES (JWT authentication + admin role required)
# ============================================================================
api_v1_router.include_router(
    admin_bookings.router,
    # No prefix needed - router already has "/admin/bookings" prefix
    tags=["Admin"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    Shows the structure of all API routes organized by authentication type.
    """
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required; bookings are managed with their access token",
            "admin": "JWT Bearer token with admin role required"
        }
    }
