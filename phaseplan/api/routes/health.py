"""Health check endpoints."""

from fastapi import APIRouter

from phaseplan.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Liveness endpoint; reports the running environment."""

    return {"status": "ok", "environment": get_settings().app_env}
