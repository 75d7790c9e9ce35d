"""FastAPI application entrypoint."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from phaseplan.api.router import api_router
from phaseplan.core.config import get_settings
from phaseplan.planning.ports import FTECalculator

LOGGER = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(fte_calculator: FTECalculator | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    ``fte_calculator`` backs the capacity plan endpoint; without one that
    endpoint answers 503 while the rest of the API keeps working.
    """

    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
    )
    app.state.fte_calculator = fte_calculator
    if fte_calculator is None:
        LOGGER.warning("No FTE calculator configured; capacity plan endpoint is disabled.")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", tags=["system"])
    def root() -> dict[str, str]:
        return {"service": settings.app_name, "environment": settings.app_env, "status": "running"}

    return app


app = create_app()
