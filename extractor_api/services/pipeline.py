"""Extraction pipeline orchestration.

cache lookup -> extract -> normalize -> resolve sizes -> assemble -> cache store
"""

import time
from typing import Any, Dict

import structlog

from extractor_api.core.metrics import MetricsCollector
from extractor_api.extractors.base import MetadataExtractor
from extractor_api.extractors.exceptions import ExtractionError
from extractor_api.services.assembler import assemble
from extractor_api.services.cache import LookupCache, NullLookupCache
from extractor_api.services.normalizer import normalize
from extractor_api.services.size_resolver import SizeResolver

logger = structlog.get_logger(__name__)


class ExtractionPipeline:
    """Produces the public format listing for a page URL."""

    def __init__(
        self,
        extractor: MetadataExtractor,
        resolver: SizeResolver,
        cache: LookupCache | None = None,
    ):
        self.extractor = extractor
        self.resolver = resolver
        self.cache = cache or NullLookupCache()

    async def run(self, url: str) -> Dict[str, Any]:
        """
        Build the format listing for ``url``.

        Args:
            url: Validated page URL

        Returns:
            Response payload (``formats`` plus optional ``title``/``thumbnail``)

        Raises:
            ExtractionError: If metadata extraction fails
        """
        cached = await self.cache.get(url)
        if cached is not None:
            logger.info("Serving cached formats", url=url)
            return cached

        start_time = time.monotonic()
        try:
            metadata = await self.extractor.extract(url)
        except ExtractionError:
            MetricsCollector.record_extraction("failed", time.monotonic() - start_time)
            raise

        candidates = normalize(metadata.formats)
        await self.resolver.resolve_sizes(candidates)
        payload = assemble(candidates, title=metadata.title, thumbnail=metadata.thumbnail)

        await self.cache.set(url, payload)

        duration = time.monotonic() - start_time
        MetricsCollector.record_extraction("success", duration)
        logger.info(
            "Formats extracted",
            url=url,
            raw_formats=len(metadata.formats),
            formats=len(payload["formats"]),
            duration=round(duration, 3),
        )
        return payload
