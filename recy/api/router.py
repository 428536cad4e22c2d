"""
API Router - Combines all route modules.
"""
from fastapi import APIRouter

from recy.config import get_settings

from .routes import forms, users

# Main API router
api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(forms.router)
api_router.include_router(users.router)


# Health check at API level
@api_router.get("/health")
async def health_check() -> dict:
    """API health check."""
    return {"status": "ok", "version": get_settings().app_version}
