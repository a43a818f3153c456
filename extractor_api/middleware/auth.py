"""Shared-secret authentication.

When an API key is configured, protected endpoints require it either in the
``X-API-Key`` header or in the ``apikey`` query parameter. Without a key the
check is disabled.
"""

import secrets
from typing import Optional

import structlog
from fastapi import Request
from fastapi.security import APIKeyHeader

from extractor_api.core.errors import APIError
from extractor_api.core.logging import hash_api_key

logger = structlog.get_logger(__name__)

API_KEY_HEADER_NAME = "X-API-Key"
API_KEY_QUERY_NAME = "apikey"

# FastAPI security scheme for OpenAPI docs
api_key_header = APIKeyHeader(name=API_KEY_HEADER_NAME, auto_error=False)


def extract_api_key(request: Request) -> Optional[str]:
    """Return the credential sent with the request, header first."""
    return request.headers.get(API_KEY_HEADER_NAME) or request.query_params.get(API_KEY_QUERY_NAME)


class APIKeyAuth:
    """Validates the shared secret for protected routes."""

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize API key authentication.

        Args:
            api_key: The shared secret. None disables authentication.
        """
        self._api_key = api_key or None

        if self._api_key is None:
            logger.warning("No API key configured, authentication is disabled", component="auth")
        else:
            logger.info("API key authentication enabled", key_hash=hash_api_key(self._api_key))

    @property
    def enabled(self) -> bool:
        return self._api_key is not None

    def validate_api_key(self, api_key: Optional[str]) -> bool:
        """
        Validate a credential.

        Args:
            api_key: The API key to validate

        Returns:
            True if valid (or authentication is disabled), False otherwise
        """
        if self._api_key is None:
            return True
        if not api_key:
            return False
        return secrets.compare_digest(api_key.encode(), self._api_key.encode())

    def authenticate(self, request: Request) -> None:
        """
        Authenticate a request.

        Raises:
            APIError: 401 if the credential is missing or wrong
        """
        api_key = extract_api_key(request)
        if self.validate_api_key(api_key):
            return

        logger.warning(
            "API key authentication failed",
            path=request.url.path,
            key_hash=hash_api_key(api_key) if api_key else "none",
            client_ip=request.client.host if request.client else "unknown",
        )
        raise APIError.unauthorized()


def get_auth(request: Request) -> APIKeyAuth:
    """FastAPI dependency returning the application's auth handler."""
    auth = getattr(request.app.state, "auth", None)
    if auth is None:
        auth = APIKeyAuth()
        request.app.state.auth = auth
    return auth
