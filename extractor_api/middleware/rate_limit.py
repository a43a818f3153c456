"""Rate limiting middleware for FastAPI."""

from typing import Tuple

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from extractor_api.core.errors import ErrorMessage, error_body
from extractor_api.core.metrics import MetricsCollector
from extractor_api.core.rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Returns HTTP 429 with Retry-After when a client exceeds its budget.

    Only paths under the limited prefixes (the API itself) count against
    the budget; liveness, health and metrics endpoints are never limited.
    """

    DEFAULT_LIMITED_PREFIXES: Tuple[str, ...] = ("/api/",)

    def __init__(
        self,
        app: ASGIApp,
        rate_limiter: RateLimiter,
        limited_prefixes: Tuple[str, ...] = DEFAULT_LIMITED_PREFIXES,
    ) -> None:
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.limited_prefixes = limited_prefixes

    def _is_limited_path(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.limited_prefixes)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if not self._is_limited_path(path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        allowed, retry_after = self.rate_limiter.check_rate_limit(client_ip)

        if not allowed:
            MetricsCollector.record_rate_limit_exceeded()
            logger.warning(
                "rate_limit_exceeded",
                path=path,
                client_ip=client_ip,
                retry_after=round(retry_after, 2),
            )
            return JSONResponse(
                status_code=429,
                headers={"Retry-After": str(int(retry_after) + 1)},
                content=error_body(ErrorMessage.RATE_LIMIT_EXCEEDED),
            )

        return await call_next(request)
