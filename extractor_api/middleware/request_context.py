"""Per-request context: request ids, access logging, metrics, security headers."""

import time
from typing import Dict

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from extractor_api.core.logging import clear_request_id, set_request_id
from extractor_api.core.metrics import MetricsCollector

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id, logs each request and records HTTP metrics.

    Endpoint labels use the FastAPI route template; unmatched paths share a
    fixed label to keep metric cardinality bounded.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER) or None)
        start_time = time.time()
        try:
            response = await call_next(request)
            duration = time.time() - start_time

            route = request.scope.get("route")
            endpoint = route.path if route else "/unmatched"
            MetricsCollector.record_request(
                method=request.method,
                endpoint=endpoint,
                status=response.status_code,
                duration=duration,
            )
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=int(duration * 1000),
                client_ip=request.client.host if request.client else "unknown",
                user_agent=request.headers.get("user-agent"),
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            for name, value in SECURITY_HEADERS.items():
                response.headers.setdefault(name, value)
            return response
        finally:
            clear_request_id()
