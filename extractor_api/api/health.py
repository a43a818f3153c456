"""Liveness, extractor check and health endpoints."""

import asyncio
import time
from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse

from extractor_api import __version__
from extractor_api.api.dependencies import get_config, get_pipeline
from extractor_api.api.schemas import (
    CheckResponse,
    ComponentHealth,
    HealthResponse,
    LivenessResponse,
)
from extractor_api.core.checks import check_ytdlp
from extractor_api.core.config import Config
from extractor_api.services.cache import LookupCache
from extractor_api.services.pipeline import ExtractionPipeline

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])

ROOT_MESSAGE = "Universal Extractor API is running"

# Track application start time for uptime calculation
_start_time: float = time.time()


async def _check_ytdlp(binary: str) -> ComponentHealth:
    result = await check_ytdlp(binary)
    if result.available:
        return ComponentHealth(status="healthy", version=result.version)
    return ComponentHealth(
        status="unhealthy",
        details={"error": result.error or "yt-dlp not available"},
    )


async def _check_cache(cache: LookupCache) -> ComponentHealth:
    if await cache.ping():
        return ComponentHealth(status="healthy", details={"backend": cache.backend})
    return ComponentHealth(
        status="unhealthy",
        details={"backend": cache.backend, "error": "Cache store unreachable"},
    )


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Liveness string."""
    return ROOT_MESSAGE


@router.get(
    "/api/check",
    response_model=CheckResponse,
    response_model_exclude_none=True,
    responses={500: {"model": CheckResponse, "description": "yt-dlp unavailable"}},
)
async def check_extractor(config: Config = Depends(get_config)) -> JSONResponse:  # noqa: B008
    """Report whether yt-dlp can be run, and its version."""
    result = await check_ytdlp(config.extractor.binary)
    if result.available:
        body = CheckResponse(ok=True, version=result.version)
        return JSONResponse(content=body.model_dump(exclude_none=True))

    logger.warning("extractor_check_failed", error=result.error)
    body = CheckResponse(ok=False, error=result.error or "yt-dlp not available")
    return JSONResponse(
        content=body.model_dump(exclude_none=True),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@router.get("/liveness", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    """Returns HTTP 200 while the process is alive."""
    return LivenessResponse(status="alive")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "All components healthy"},
        503: {"description": "One or more components unhealthy"},
    },
)
async def health_check(
    config: Config = Depends(get_config),  # noqa: B008
    pipeline: ExtractionPipeline = Depends(get_pipeline),  # noqa: B008
) -> JSONResponse:
    """
    Detailed health check endpoint.

    Verifies yt-dlp availability and, when caching is enabled, that the
    cache store answers. Returns HTTP 503 if any component is unhealthy.
    """
    ytdlp_health, cache_health = await asyncio.gather(
        _check_ytdlp(config.extractor.binary),
        _check_cache(pipeline.cache),
    )
    components = {"ytdlp": ytdlp_health, "cache": cache_health}

    all_healthy = all(c.status == "healthy" for c in components.values())
    overall_status: Literal["healthy", "unhealthy"] = "healthy" if all_healthy else "unhealthy"

    response = HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        components=components,
    )

    logger.info(
        "health_check_completed",
        status=overall_status,
        components={k: v.status for k, v in components.items()},
    )

    status_code = status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=status_code)
