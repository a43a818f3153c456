"""URL validation utilities.

Used both for the inbound ``url`` query parameter and for filtering the
direct media URLs that come back from the extractor.
"""

import ipaddress
from dataclasses import dataclass
from typing import Any, FrozenSet, Optional
from urllib.parse import urlsplit

import structlog

logger = structlog.get_logger(__name__)

WEB_SCHEMES: FrozenSet[str] = frozenset({"http", "https"})

# Code points a host may not contain (besides whitespace and controls)
FORBIDDEN_HOST_CHARS: FrozenSet[str] = frozenset("<>^|%[]\\\"")


@dataclass(frozen=True)
class ValidationResult:
    """Result of a validation operation."""

    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[str] = None


def is_web_url(value: Any) -> bool:
    """Return True for a well-formed absolute http(s) URL with a host."""
    if not isinstance(value, str) or not value:
        return False

    try:
        parsed = urlsplit(value)
        # Accessing .port validates the port component
        parsed.port
    except ValueError:
        return False

    if parsed.scheme.lower() not in WEB_SCHEMES or not parsed.hostname:
        return False
    bracketed = "[" in parsed.netloc.rpartition("@")[2]
    return is_valid_host(parsed.hostname, bracketed=bracketed)


def is_valid_host(host: str, bracketed: bool = False) -> bool:
    """Return True for a registered name or IP literal usable as a URL host.

    ``urlsplit`` accepts any characters in the authority, so spaces, angle
    brackets and similar must be rejected here. Bracketed hosts must be
    IPv6 literals.
    """
    if bracketed or ":" in host:
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return False
        return True

    for char in host:
        if char in FORBIDDEN_HOST_CHARS or char.isspace() or not char.isprintable():
            return False

    try:
        host.encode("idna")
    except UnicodeError:
        return False
    return True


class URLValidator:
    """Validates target page URLs submitted by clients.

    Only absolute http(s) URLs are accepted; anything else (``file:``,
    ``javascript:``, bare hostnames) is rejected before yt-dlp is invoked.
    """

    def validate(self, url: Optional[str]) -> ValidationResult:
        if not url or not isinstance(url, str):
            return ValidationResult(is_valid=False, error_message="URL is required")

        url = url.strip()
        if not url:
            return ValidationResult(is_valid=False, error_message="URL cannot be empty")

        if not is_web_url(url):
            logger.debug("URL rejected", url=url)
            return ValidationResult(is_valid=False, error_message="Invalid url")

        return ValidationResult(is_valid=True, sanitized_value=url)
