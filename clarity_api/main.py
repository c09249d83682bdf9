"""
FastAPI application entrypoint.

Startup sequence:
  1. Configure structured logging.
  2. Register versioned routers.
  3. Register global exception handlers.
  4. Optionally attach rate limiter.

Serve with: uvicorn clarity_api.main:app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from clarity_api.api.v1.endpoints.health import router as health_router
from clarity_api.api.v1.router import v1_router
from clarity_api.core.config import Settings, get_settings
from clarity_api.core.errors import register_exception_handlers
from clarity_api.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan handler.
    Everything before `yield` runs at startup; everything after at shutdown.
    """
    settings: Settings = app.state.settings
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    logger.info(
        "Starting %s v%s [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    logger.info(
        "Auth: %s | Rate limiting: %s",
        "enabled" if settings.auth_enabled else "disabled (open mode)",
        "enabled" if settings.rate_limit_enabled else "disabled",
    )
    logger.info(
        "Scoring defaults: block_size=%d blur_threshold=%.3f k=%g x0=%g weighting=%s",
        settings.default_block_size,
        settings.default_blur_threshold,
        settings.logistic_steepness,
        settings.logistic_midpoint,
        settings.tile_weighting,
    )

    logger.info("Service ready.")
    yield

    logger.info("Shutting down %s.", settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="clarity-api",
        description=(
            "Image clarity scoring service.\n\n"
            "Scores decoded RGBA pixel buffers with a centre-weighted Laplacian "
            "block-variance metric and classifies them as blurred or sharp.\n\n"
            "**Authentication**: Pass your API key in the `X-Api-Key` header. "
            "Authentication is disabled when the `API_KEY` environment variable is unset."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    if settings.rate_limit_enabled:
        _attach_rate_limiter(app, settings)

    # Routers.
    app.include_router(health_router)   # /health (no prefix, no auth)
    app.include_router(v1_router)       # /v1/clarity, /v1/clarity/batch

    # Global exception handlers (must come after routers).
    register_exception_handlers(app)

    return app


def _attach_rate_limiter(app: FastAPI, settings: Settings) -> None:
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info("Rate limiter: %d req/min per IP", settings.rate_limit_per_minute)


app = create_app()
