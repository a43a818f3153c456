"""Middleware package for the API."""

from extractor_api.middleware.auth import APIKeyAuth, extract_api_key, get_auth
from extractor_api.middleware.rate_limit import RateLimitMiddleware
from extractor_api.middleware.request_context import RequestContextMiddleware

__all__ = [
    "APIKeyAuth",
    "extract_api_key",
    "get_auth",
    "RateLimitMiddleware",
    "RequestContextMiddleware",
]
