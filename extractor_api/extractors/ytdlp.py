"""yt-dlp metadata extractor."""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

import structlog

from extractor_api.extractors.base import MetadataExtractor
from extractor_api.extractors.exceptions import (
    ExtractionTimeoutError,
    ExtractorNotFoundError,
    ExtractorProcessError,
    InvalidOutputError,
)
from extractor_api.models.formats import ExtractionMetadata

logger = structlog.get_logger(__name__)

# Only the head of stderr is logged
STDERR_LOG_LIMIT = 500


def parse_metadata_output(stdout: str) -> Dict[str, Any]:
    """
    Parse yt-dlp ``-j`` output into a single metadata object.

    A single video prints one JSON document. Playlists print one object per
    line, in which case the first line starting with ``{`` that parses wins.

    Args:
        stdout: Decoded standard output of yt-dlp

    Returns:
        The parsed metadata object

    Raises:
        InvalidOutputError: If no JSON object can be recovered
    """
    try:
        parsed = json.loads(stdout)
    except json.JSONDecodeError:
        parsed = None
        for line in stdout.splitlines():
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                parsed = json.loads(line)
            except json.JSONDecodeError:
                continue
            break

    if not isinstance(parsed, dict):
        raise InvalidOutputError("yt-dlp output did not contain a JSON object")
    return parsed


class YtDlpExtractor(MetadataExtractor):
    """Runs yt-dlp as a subprocess to dump page metadata as JSON."""

    def __init__(self, binary: str = "yt-dlp", timeout: float = 60.0):
        """
        Initialize the extractor.

        Args:
            binary: yt-dlp executable name or path
            timeout: Seconds to wait for a metadata dump before giving up
        """
        self.binary = binary
        self.timeout = timeout

        logger.info("yt-dlp extractor initialized", binary=binary, timeout=timeout)

    def build_command(self, url: str) -> List[str]:
        # "--" keeps a URL from ever being read as an option
        return [self.binary, "-j", "--no-warnings", "--", url]

    async def extract(self, url: str) -> ExtractionMetadata:
        logger.info("Extracting metadata", url=url)

        stdout, stderr = await self._run(self.build_command(url), self.timeout)

        if stderr:
            logger.debug("yt-dlp diagnostics", stderr=stderr[:STDERR_LOG_LIMIT])

        data = parse_metadata_output(stdout)
        metadata = ExtractionMetadata.from_dict(data)

        logger.info(
            "Metadata extracted",
            url=url,
            title=metadata.title,
            raw_formats=len(metadata.formats),
        )
        return metadata

    async def _run(self, cmd: List[str], timeout: Optional[float]) -> Tuple[str, str]:
        """
        Execute a yt-dlp command without a shell.

        Returns:
            Tuple of (stdout, stderr)

        Raises:
            ExtractorNotFoundError: If the binary is missing
            ExtractionTimeoutError: If the command exceeds the timeout
            ExtractorProcessError: If the command exits non-zero
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error("yt-dlp not found, ensure it is installed and in PATH", binary=cmd[0])
            raise ExtractorNotFoundError(f"{cmd[0]} is not installed or not in PATH")

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning("yt-dlp timed out", timeout=timeout)
            raise ExtractionTimeoutError(f"{cmd[0]} timed out after {timeout}s")

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if process.returncode != 0:
            logger.error(
                "yt-dlp exited with an error",
                returncode=process.returncode,
                stderr=stderr[:STDERR_LOG_LIMIT],
            )
            raise ExtractorProcessError(
                f"{cmd[0]} exited with code {process.returncode}",
                returncode=process.returncode,
                stderr=stderr,
            )

        return stdout, stderr
