"""
SafeRoute — FastAPI Application.

Entry point for the API server.
Run: saferoute-api  (or uvicorn saferoute.main:app --reload)

  - POST /api/v1/routes/analyze  ← candidate routes from the directions provider
  - POST /api/v1/routes/score
  - POST /api/v1/routes/decide
  - GET  /health
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI

from saferoute.api.routers.routes import router as routes_router
from saferoute.config import PipelineConfig, Settings, settings as default_settings
from saferoute.logging_setup import configure_logging
from saferoute.middleware.error_handler import ErrorHandlerMiddleware
from saferoute.middleware.request_context import RequestContextMiddleware
from saferoute.pipeline import RoutePipeline

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the pipeline; a missing credential aborts startup."""
        configure_logging(settings.log_level, settings.log_format)
        logger.info("saferoute_starting", version=settings.app_version, environment=settings.environment)
        app.state.pipeline = RoutePipeline(PipelineConfig.from_settings(settings))
        yield
        logger.info("saferoute_shutdown")

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Route safety scoring: structural analysis → public-safety intelligence "
            "→ deterministic score → recommended route."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # ── Middleware (last added = outermost) ──────────────────────────
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.debug)

    # ── Routes ────────────────────────────────────────────────────────
    app.include_router(routes_router, prefix=settings.api_prefix)

    @app.get("/health", tags=["health"])
    async def health():
        """Liveness check. Does NOT call the intelligence service."""
        return {
            "status": "ok",
            "version": settings.app_version,
            "service": "saferoute",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the default app on API_HOST:API_PORT."""
    uvicorn.run(app, host=default_settings.api_host, port=default_settings.api_port)
