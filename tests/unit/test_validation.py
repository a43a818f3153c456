"""Tests for URL validation"""

import pytest

from extractor_api.core.validation import URLValidator, is_valid_host, is_web_url


class TestIsWebUrl:
    """Test the http(s) URL predicate"""

    @pytest.mark.parametrize(
        "value",
        [
            "https://example.com/watch?v=1",
            "http://example.com",
            "HTTPS://EXAMPLE.COM/path",
            "https://example.com:8443/x",
            "https://192.0.2.10/media.mp4",
            "https://[2001:db8::1]:8443/media.mp4",
            "https://bücher.example/watch",
        ],
    )
    def test_accepts(self, value: str) -> None:
        assert is_web_url(value) is True

    @pytest.mark.parametrize(
        "value",
        [
            "",
            None,
            42,
            "example.com/watch",
            "ftp://example.com/file.mp4",
            "file:///etc/passwd",
            "javascript:alert(1)",
            "https://",
            "https://example.com:99999/",
            "not a url",
            "http://exa mple.com/v.mp4",
            "https://exa<mple.com/",
            "https://example|com/",
            "https://ex%20ample.com/",
            "https://[not-an-ip]/",
            "https://a..b/",
            "https://" + "a" * 64 + ".example/",
        ],
    )
    def test_rejects(self, value: object) -> None:
        assert is_web_url(value) is False


class TestURLValidator:
    """Test validation of the url query parameter"""

    def test_valid_url_is_stripped(self) -> None:
        result = URLValidator().validate("  https://example.com/watch  ")

        assert result.is_valid is True
        assert result.sanitized_value == "https://example.com/watch"

    def test_missing(self) -> None:
        result = URLValidator().validate(None)

        assert result.is_valid is False
        assert result.error_message == "URL is required"

    def test_blank(self) -> None:
        assert URLValidator().validate("   ").is_valid is False

    def test_invalid(self) -> None:
        result = URLValidator().validate("file:///etc/passwd")

        assert result.is_valid is False
        assert result.error_message == "Invalid url"


class TestIsValidHost:
    """Test host syntax checks"""

    @pytest.mark.parametrize("host", ["cdn.example.com", "my_cdn.example.com", "example.com.", "::1"])
    def test_accepts(self, host: str) -> None:
        assert is_valid_host(host) is True

    @pytest.mark.parametrize("host", ["exa mple.com", "exa\tmple.com", "a\x00b", "a^b", "a..b", "1:2:3"])
    def test_rejects(self, host: str) -> None:
        assert is_valid_host(host) is False

    def test_bracketed_host_must_be_ipv6(self) -> None:
        assert is_valid_host("2001:db8::1", bracketed=True) is True
        assert is_valid_host("example.com", bracketed=True) is False
