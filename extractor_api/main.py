"""FastAPI application entry point.

This module assembles all components and creates the main application.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from extractor_api import __version__
from extractor_api.api import extract, health, metrics
from extractor_api.api.dependencies import get_config, get_pipeline
from extractor_api.core.config import Config, ConfigService
from extractor_api.core.errors import register_exception_handlers
from extractor_api.core.logging import configure_logging
from extractor_api.core.metrics import initialize_metrics
from extractor_api.core.rate_limiter import RateLimiter
from extractor_api.extractors.base import MetadataExtractor
from extractor_api.extractors.ytdlp import YtDlpExtractor
from extractor_api.middleware.auth import APIKeyAuth
from extractor_api.middleware.rate_limit import RateLimitMiddleware
from extractor_api.middleware.request_context import RequestContextMiddleware
from extractor_api.services.cache import LookupCache, build_cache
from extractor_api.services.pipeline import ExtractionPipeline
from extractor_api.services.size_resolver import SizeResolver, create_probe_client

logger = structlog.get_logger(__name__)


def build_resolver(config: Config, client: Optional[httpx.AsyncClient] = None) -> SizeResolver:
    """Create a size resolver from the probe configuration."""
    probes = config.probes
    return SizeResolver(
        concurrency=probes.concurrency,
        max_probes=probes.max_probes,
        head_timeout=probes.head_timeout,
        range_timeout=probes.range_timeout,
        max_redirects=probes.max_redirects,
        range_fallback=probes.range_fallback,
        client=client,
    )


def create_app(
    config: Optional[Config] = None,
    extractor: Optional[MetadataExtractor] = None,
    cache: Optional[LookupCache] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Collaborators that are not passed in are built from configuration during
    startup; passing them in is how tests substitute fakes.

    Args:
        config: Loaded configuration (read from config.yaml and env if omitted)
        extractor: Metadata extractor (yt-dlp subprocess if omitted)
        cache: Lookup cache (selected by the cache config if omitted)
        http_client: HTTP client for size probes (created at startup if omitted)
    """
    config = config or ConfigService().load()
    configure_logging(config.logging.level, config.logging.format)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Application starting", version=__version__)
        initialize_metrics(__version__)

        lookup_cache = cache or build_cache(config.cache)
        owned_client = None
        if http_client is None:
            owned_client = create_probe_client(
                max_redirects=config.probes.max_redirects,
                max_keepalive_connections=config.probes.concurrency * 2,
            )
        resolver = build_resolver(config, client=http_client or owned_client)

        app.state.pipeline = ExtractionPipeline(
            extractor=extractor
            or YtDlpExtractor(binary=config.extractor.binary, timeout=config.extractor.timeout),
            resolver=resolver,
            cache=lookup_cache,
        )

        logger.info(
            "Application startup complete",
            port=config.server.port,
            cache_backend=lookup_cache.backend,
            probe_concurrency=config.probes.concurrency,
            auth_enabled=app.state.auth.enabled,
        )

        yield

        logger.info("Application shutting down")
        if owned_client is not None:
            await owned_client.aclose()
        if cache is None:
            await lookup_cache.close()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Universal Extractor API",
        description="Lists downloadable media formats for a page URL using yt-dlp",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.auth = APIKeyAuth(api_key=config.security.api_key)

    # Middleware added last runs first: request context wraps CORS wraps rate limiting
    if config.rate_limiting.enabled:
        app.add_middleware(
            RateLimitMiddleware,
            rate_limiter=RateLimiter(
                rpm=config.rate_limiting.rpm,
                burst_capacity=config.rate_limiting.burst_capacity,
            ),
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    async def current_pipeline() -> ExtractionPipeline:
        return app.state.pipeline

    async def current_config() -> Config:
        return config

    app.dependency_overrides[get_pipeline] = current_pipeline
    app.dependency_overrides[get_config] = current_config

    app.include_router(health.router)
    app.include_router(extract.router)
    app.include_router(metrics.router)

    return app


def run() -> None:
    """Console entry point: serve the application with uvicorn."""
    import uvicorn

    config = ConfigService().load()
    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    run()
