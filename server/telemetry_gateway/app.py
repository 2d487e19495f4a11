"""FastAPI application for the telemetry gateway."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .app_state import TelemetryState
from .config import GatewayConfig, config

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_app(cfg: GatewayConfig | None = None) -> FastAPI:
    """Build a gateway app around its own event store."""
    cfg = cfg or config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown."""
        logger.info("Telemetry gateway starting on %s:%d", cfg.host, cfg.port)
        logger.info("Data directory: %s", cfg.data_dir)
        yield
        app.state.telemetry.close()
        logger.info("Telemetry gateway stopped")

    app = FastAPI(
        title="Kingdom Telemetry Gateway",
        description="Consent-gated interaction event ingestion and operator queries",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.telemetry = TelemetryState(cfg)

    # CORS: capture adapters run in browsers as well as native apps
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers.admin import router as admin_router
    from .routers.events import router as events_router
    from .routers.health import router as health_router

    app.include_router(health_router)
    app.include_router(events_router)
    app.include_router(admin_router)
    return app


app = create_app()
