"""API routers."""

from extractor_api.api import extract, health, metrics

__all__ = ["extract", "health", "metrics"]
