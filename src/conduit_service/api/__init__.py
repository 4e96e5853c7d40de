"""
API routers for the Extension Service.
"""
from fastapi import APIRouter

from .routes import audience, events, health, registration

router = APIRouter()
router.include_router(health.router)

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(registration.router)
v1_router.include_router(events.router)
v1_router.include_router(audience.router)
router.include_router(v1_router)

__all__ = ["router"]
