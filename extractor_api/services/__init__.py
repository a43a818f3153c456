"""Pipeline services: normalization, size resolution, assembly, caching."""

from extractor_api.services.assembler import assemble, human_readable
from extractor_api.services.cache import (
    LookupCache,
    MemoryLookupCache,
    NullLookupCache,
    RedisLookupCache,
    build_cache,
)
from extractor_api.services.normalizer import normalize
from extractor_api.services.pipeline import ExtractionPipeline
from extractor_api.services.size_resolver import SizeResolver

__all__ = [
    "assemble",
    "human_readable",
    "LookupCache",
    "MemoryLookupCache",
    "NullLookupCache",
    "RedisLookupCache",
    "build_cache",
    "normalize",
    "ExtractionPipeline",
    "SizeResolver",
]
