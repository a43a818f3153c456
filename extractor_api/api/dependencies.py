"""Dependency placeholders, overridden by the application factory."""

from extractor_api.core.config import Config
from extractor_api.services.pipeline import ExtractionPipeline


async def get_pipeline() -> ExtractionPipeline:
    """Get the extraction pipeline instance."""
    raise NotImplementedError("Extraction pipeline dependency not configured")


async def get_config() -> Config:
    """Get the loaded application configuration."""
    raise NotImplementedError("Configuration dependency not configured")
