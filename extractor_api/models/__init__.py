"""Data models for the extraction pipeline."""

from extractor_api.models.formats import Candidate, ExtractionMetadata, MediaType, RawFormatRecord

__all__ = ["Candidate", "ExtractionMetadata", "MediaType", "RawFormatRecord"]
