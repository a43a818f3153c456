"""Extraction-stage exceptions.

Every failure of the metadata extractor is a hard failure for the request and
surfaces to clients as a generic 500; the specific subclass only matters for
logging and metrics.
"""


class ExtractionError(Exception):
    """Base exception for metadata extraction failures."""


class ExtractorNotFoundError(ExtractionError):
    """Raised when the extractor binary is not installed."""


class ExtractionTimeoutError(ExtractionError):
    """Raised when the extractor does not finish within its timeout."""


class ExtractorProcessError(ExtractionError):
    """Raised when the extractor exits with a non-zero status."""

    def __init__(self, message: str, returncode: int, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class InvalidOutputError(ExtractionError):
    """Raised when extractor output holds no parseable metadata object."""
