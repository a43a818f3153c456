"""Best-effort size resolution for candidates without a declared size.

Each unresolved candidate gets at most two probes: a HEAD request, then,
if that fails or reports no length, a one-byte ranged GET. Probes run
concurrently behind a semaphore; a failing or slow probe only costs its own
candidate a size.
"""

import asyncio
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import httpx
import structlog

from extractor_api import __version__
from extractor_api.core.metrics import MetricsCollector
from extractor_api.models.formats import Candidate

logger = structlog.get_logger(__name__)

USER_AGENT = f"Mozilla/5.0 (compatible; UniversalExtractor/{__version__})"

_CONTENT_RANGE_TOTAL = re.compile(r"/\s*(\d+)\s*$")


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """Parse a Content-Length header; non-positive or garbage values yield None."""
    if not value:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length > 0 else None


def parse_content_range_total(value: Optional[str]) -> Optional[int]:
    """Extract the total size from ``Content-Range: bytes 0-0/12345``."""
    if not value:
        return None
    match = _CONTENT_RANGE_TOTAL.search(value)
    if not match:
        return None
    total = int(match.group(1))
    return total if total > 0 else None


def probe_limits(max_keepalive_connections: int = 20) -> httpx.Limits:
    """Connection limits for the shared probe client.

    Total connections are unbounded, so requests never queue behind each
    other in the pool. Each request's fan-out is capped by its resolver's
    semaphore.
    """
    return httpx.Limits(max_connections=None, max_keepalive_connections=max_keepalive_connections)


def create_probe_client(
    max_redirects: int = 5, max_keepalive_connections: int = 20
) -> httpx.AsyncClient:
    """Create an HTTP client that follows a bounded number of redirects."""
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=max_redirects,
        headers={"User-Agent": USER_AGENT},
        limits=probe_limits(max_keepalive_connections),
    )


class SizeResolver:
    """Fills in ``filesize_bytes`` for candidates by probing their URLs."""

    def __init__(
        self,
        concurrency: int = 6,
        max_probes: int = 0,
        head_timeout: float = 10.0,
        range_timeout: float = 15.0,
        max_redirects: int = 5,
        range_fallback: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the resolver.

        Args:
            concurrency: Maximum number of probes in flight
            max_probes: Probe at most this many candidates per call (0 = all)
            head_timeout: Timeout in seconds for the HEAD probe
            range_timeout: Timeout in seconds for the ranged GET fallback
            max_redirects: Redirects followed per probe
            range_fallback: Whether to try a ranged GET after HEAD
            client: Shared HTTP client; a private one is created per call if omitted
        """
        self.concurrency = concurrency
        self.max_probes = max_probes
        self.head_timeout = head_timeout
        self.range_timeout = range_timeout
        self.max_redirects = max_redirects
        self.range_fallback = range_fallback
        self._client = client

    def create_client(self) -> httpx.AsyncClient:
        """Create an HTTP client configured for probing."""
        return create_probe_client(self.max_redirects, max_keepalive_connections=self.concurrency)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with self.create_client() as client:
            yield client

    async def resolve_sizes(self, candidates: List[Candidate]) -> List[Candidate]:
        """
        Probe candidates lacking a size, updating them in place.

        Args:
            candidates: Normalized candidates

        Returns:
            The same list, with sizes filled in where a probe succeeded
        """
        pending = [c for c in candidates if c.filesize_bytes is None]
        skipped = 0
        if self.max_probes and len(pending) > self.max_probes:
            skipped = len(pending) - self.max_probes
            pending = pending[: self.max_probes]
            MetricsCollector.record_probe("skipped", count=skipped)

        if not pending:
            return candidates

        logger.info(
            "Resolving sizes",
            probes=len(pending),
            skipped=skipped,
            concurrency=self.concurrency,
        )

        semaphore = asyncio.Semaphore(self.concurrency)
        async with self._session() as client:
            await asyncio.gather(*(self._resolve_one(client, semaphore, c) for c in pending))

        resolved = sum(1 for c in pending if c.filesize_bytes is not None)
        logger.info("Sizes resolved", resolved=resolved, unresolved=len(pending) - resolved)
        return candidates

    async def _resolve_one(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        candidate: Candidate,
    ) -> None:
        async with semaphore:
            try:
                size = await self.probe(client, candidate.url)
            except Exception as e:
                logger.debug("Size probe crashed", url=candidate.url, error=str(e))
                size = None

        if size is not None:
            candidate.filesize_bytes = size

    async def probe(self, client: httpx.AsyncClient, url: str) -> Optional[int]:
        """Return the size of the resource at ``url``, or None if unknown."""
        size = await self._probe_head(client, url)
        if size is not None:
            MetricsCollector.record_probe("head")
            return size

        if self.range_fallback:
            size = await self._probe_range(client, url)
            if size is not None:
                MetricsCollector.record_probe("range")
                return size

        MetricsCollector.record_probe("unresolved")
        return None

    async def _probe_head(self, client: httpx.AsyncClient, url: str) -> Optional[int]:
        try:
            response = await client.head(url, timeout=self.head_timeout)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("HEAD probe failed", url=url, error=str(e) or type(e).__name__)
            return None

        return parse_content_length(response.headers.get("content-length"))

    async def _probe_range(self, client: httpx.AsyncClient, url: str) -> Optional[int]:
        try:
            async with client.stream(
                "GET",
                url,
                headers={"Range": "bytes=0-0"},
                timeout=self.range_timeout,
            ) as response:
                response.raise_for_status()
                total = parse_content_range_total(response.headers.get("content-range"))
                if total is not None:
                    return total
                # A 200 means the Range header was ignored and the length is the full size
                if response.status_code == httpx.codes.OK:
                    return parse_content_length(response.headers.get("content-length"))
                return None
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Range probe failed", url=url, error=str(e) or type(e).__name__)
            return None
