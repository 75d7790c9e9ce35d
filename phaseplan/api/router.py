"""Top-level API router."""

from fastapi import APIRouter

from phaseplan.api.routes.capacity_plan import router as capacity_plan_router
from phaseplan.api.routes.estimates import router as estimates_router
from phaseplan.api.routes.health import router as health_router
from phaseplan.api.routes.timeline import router as timeline_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(estimates_router)
api_router.include_router(timeline_router)
api_router.include_router(capacity_plan_router)
