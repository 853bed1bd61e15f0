"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
"""

from fastapi import APIRouter

from luvv.api.routes.generate import router as generate_router
from luvv.api.routes.health import router as health_router
from luvv.api.routes.stats import router as stats_router


def create_api_router() -> APIRouter:
    """Create the API router with all routes registered."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(generate_router, tags=["generation"])
    api_router.include_router(stats_router, tags=["stats"])
    return api_router


__all__ = ["create_api_router"]
