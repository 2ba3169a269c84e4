"""
Vitrine Media API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter registered by the
application under the /api/v1 prefix.

Router Structure:
    - /uploads: Media upload endpoints (single, multiple)
"""

from fastapi import APIRouter

from vitrine_media.api.v1.uploads import router as uploads_router


api_router = APIRouter()

api_router.include_router(
    uploads_router,
    prefix="/uploads",
    tags=["uploads"],
)

__all__ = ["api_router"]
