"""Router package exposing all API routers."""

from fastapi import APIRouter

from .health import router as health_router
from .pipeline.router import router as pipeline_router

router = APIRouter()
router.include_router(health_router)
router.include_router(pipeline_router)

__all__ = ["router", "health_router", "pipeline_router"]
