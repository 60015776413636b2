"""
API router.
"""
from fastapi import APIRouter

from app.api.endpoints import health, items, controls, sub_controls, implementations, matrix

api_router = APIRouter()

# Health check endpoint (no prefix, so it's /api/health)
api_router.include_router(health.router, tags=["health"])

api_router.include_router(items.router, prefix="/items", tags=["items"])
api_router.include_router(controls.router, prefix="/controls", tags=["controls"])
api_router.include_router(sub_controls.router, prefix="/sub-controls", tags=["sub-controls"])
api_router.include_router(implementations.router, prefix="/implementations", tags=["implementations"])
api_router.include_router(
    implementations.sub_control_router,
    prefix="/sub-control-implementations",
    tags=["implementations"],
)
api_router.include_router(matrix.router, prefix="/matrix", tags=["matrix"])
