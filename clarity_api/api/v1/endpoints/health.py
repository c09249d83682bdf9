"""
Health check endpoints.

GET /health     — root-level health (no auth required, used by Docker/k8s probes)
GET /v1/health  — versioned alias
"""

from __future__ import annotations

import time

from fastapi import APIRouter

from clarity_api.core.config import Settings, SettingsDep
from clarity_api.schemas.health import HealthResponse, ScoringParameters

router = APIRouter(tags=["Health"])

# Recorded at import time — a rough approximation of process start.
_START_TIME = time.time()


def _build_health_response(settings: Settings) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _START_TIME, 1),
        scoring=ScoringParameters(
            default_block_size=settings.default_block_size,
            default_blur_threshold=settings.default_blur_threshold,
            logistic_steepness=settings.logistic_steepness,
            logistic_midpoint=settings.logistic_midpoint,
            tile_weighting=settings.tile_weighting,
        ),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the service status and the active scoring parameters. "
        "Does not require authentication. Suitable for Docker HEALTHCHECK and "
        "Kubernetes liveness/readiness probes."
    ),
)
async def health_root(settings: SettingsDep) -> HealthResponse:
    return _build_health_response(settings)


@router.get(
    "/v1/health",
    response_model=HealthResponse,
    summary="Service health check (versioned alias)",
)
async def health_v1(settings: SettingsDep) -> HealthResponse:
    return _build_health_response(settings)
