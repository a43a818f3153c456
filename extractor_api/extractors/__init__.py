"""Metadata extractor collaborators."""

from extractor_api.extractors.base import MetadataExtractor
from extractor_api.extractors.exceptions import (
    ExtractionError,
    ExtractionTimeoutError,
    ExtractorNotFoundError,
    ExtractorProcessError,
    InvalidOutputError,
)
from extractor_api.extractors.ytdlp import YtDlpExtractor

__all__ = [
    "MetadataExtractor",
    "ExtractionError",
    "ExtractionTimeoutError",
    "ExtractorNotFoundError",
    "ExtractorProcessError",
    "InvalidOutputError",
    "YtDlpExtractor",
]
