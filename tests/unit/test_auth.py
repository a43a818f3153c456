"""Tests for shared-secret authentication"""

from unittest.mock import MagicMock

import pytest

from extractor_api.core.errors import APIError
from extractor_api.core.logging import hash_api_key
from extractor_api.middleware.auth import APIKeyAuth, extract_api_key


def _request(headers: dict | None = None, query: dict | None = None) -> MagicMock:
    request = MagicMock()
    request.headers = headers or {}
    request.query_params = query or {}
    request.url.path = "/api/extract"
    request.client.host = "127.0.0.1"
    return request


class TestExtractApiKey:
    """Test where credentials are read from"""

    def test_header(self) -> None:
        assert extract_api_key(_request(headers={"X-API-Key": "h"})) == "h"

    def test_query_parameter(self) -> None:
        assert extract_api_key(_request(query={"apikey": "q"})) == "q"

    def test_header_wins(self) -> None:
        assert extract_api_key(_request(headers={"X-API-Key": "h"}, query={"apikey": "q"})) == "h"

    def test_missing(self) -> None:
        assert extract_api_key(_request()) is None


class TestAPIKeyAuth:
    """Test credential validation"""

    def test_disabled_without_key(self) -> None:
        auth = APIKeyAuth()

        assert auth.enabled is False
        assert auth.validate_api_key(None) is True
        auth.authenticate(_request())

    def test_empty_key_disables(self) -> None:
        assert APIKeyAuth(api_key="").enabled is False

    def test_valid_key(self) -> None:
        auth = APIKeyAuth(api_key="s3cret")

        assert auth.enabled is True
        assert auth.validate_api_key("s3cret") is True
        auth.authenticate(_request(query={"apikey": "s3cret"}))

    @pytest.mark.parametrize("supplied", [None, "", "wrong", "s3cret "])
    def test_invalid_key(self, supplied: str | None) -> None:
        assert APIKeyAuth(api_key="s3cret").validate_api_key(supplied) is False

    def test_authenticate_raises_401(self) -> None:
        auth = APIKeyAuth(api_key="s3cret")

        with pytest.raises(APIError) as exc_info:
            auth.authenticate(_request(headers={"X-API-Key": "nope"}))

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Missing or invalid API key"


class TestHashApiKey:
    """Test key hashing for logs"""

    def test_format(self) -> None:
        hashed = hash_api_key("s3cret")

        assert hashed.startswith("sha256:")
        assert len(hashed) == len("sha256:") + 16
        assert "s3cret" not in hashed

    def test_deterministic(self) -> None:
        assert hash_api_key("abc") == hash_api_key("abc")
        assert hash_api_key("abc") != hash_api_key("abd")
