"""Abstract base class for metadata extractors."""

from abc import ABC, abstractmethod

from extractor_api.models.formats import ExtractionMetadata


class MetadataExtractor(ABC):
    """Turns a media page URL into structured metadata."""

    @abstractmethod
    async def extract(self, url: str) -> ExtractionMetadata:
        """
        Extract metadata, including the raw format list, for a page URL.

        Args:
            url: Media page URL

        Returns:
            Parsed extraction metadata

        Raises:
            ExtractionError: If the extractor fails or its output is unusable
        """
