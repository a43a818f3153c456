"""Tests for the yt-dlp metadata extractor"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from extractor_api.core.checks import check_ytdlp
from extractor_api.extractors.exceptions import (
    ExtractionError,
    ExtractionTimeoutError,
    ExtractorNotFoundError,
    ExtractorProcessError,
    InvalidOutputError,
)
from extractor_api.extractors.ytdlp import YtDlpExtractor, parse_metadata_output


@pytest.fixture
def extractor() -> YtDlpExtractor:
    return YtDlpExtractor(binary="yt-dlp", timeout=5)


@pytest.fixture
def sample_metadata() -> dict:
    return {
        "title": "Big Buck Bunny",
        "thumbnail": "https://i.example.com/bbb.jpg",
        "formats": [
            {"url": "https://cdn.example.com/bbb-720.mp4", "format_note": "720p", "height": 720},
            {"url": "https://cdn.example.com/bbb.m4a", "vcodec": "none", "acodec": "mp4a"},
        ],
    }


def _process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> AsyncMock:
    process = AsyncMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.kill = MagicMock()
    return process


class TestParseMetadataOutput:
    """Test recovery of the metadata object from stdout"""

    def test_single_document(self, sample_metadata: dict) -> None:
        assert parse_metadata_output(json.dumps(sample_metadata)) == sample_metadata

    def test_pretty_printed_document(self, sample_metadata: dict) -> None:
        assert parse_metadata_output(json.dumps(sample_metadata, indent=2)) == sample_metadata

    def test_playlist_uses_first_object_line(self) -> None:
        stdout = "\n".join(
            [
                "[info] something noisy",
                "{broken",
                json.dumps({"title": "first"}),
                json.dumps({"title": "second"}),
            ]
        )

        assert parse_metadata_output(stdout) == {"title": "first"}

    @pytest.mark.parametrize("stdout", ["", "not json", "[1, 2, 3]", '"string"'])
    def test_no_object_raises(self, stdout: str) -> None:
        with pytest.raises(InvalidOutputError):
            parse_metadata_output(stdout)


class TestYtDlpExtractor:
    """Test subprocess execution and error mapping"""

    def test_build_command(self, extractor: YtDlpExtractor) -> None:
        assert extractor.build_command("https://example.com/watch?v=1") == [
            "yt-dlp",
            "-j",
            "--no-warnings",
            "--",
            "https://example.com/watch?v=1",
        ]

    @pytest.mark.asyncio
    async def test_extract_success(self, extractor: YtDlpExtractor, sample_metadata: dict) -> None:
        with patch("asyncio.create_subprocess_exec") as mock_subprocess:
            mock_subprocess.return_value = _process(json.dumps(sample_metadata).encode())

            metadata = await extractor.extract("https://example.com/watch?v=1")

        assert metadata.title == "Big Buck Bunny"
        assert metadata.thumbnail == "https://i.example.com/bbb.jpg"
        assert len(metadata.formats) == 2
        args = mock_subprocess.call_args.args
        assert args == ("yt-dlp", "-j", "--no-warnings", "--", "https://example.com/watch?v=1")

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, extractor: YtDlpExtractor) -> None:
        with patch("asyncio.create_subprocess_exec") as mock_subprocess:
            mock_subprocess.return_value = _process(
                stderr=b"ERROR: Unsupported URL", returncode=1
            )

            with pytest.raises(ExtractorProcessError) as exc_info:
                await extractor.extract("https://example.com/nothing")

        assert exc_info.value.returncode == 1
        assert "Unsupported URL" in exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_missing_binary(self, extractor: YtDlpExtractor) -> None:
        with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError()):
            with pytest.raises(ExtractorNotFoundError):
                await extractor.extract("https://example.com/watch?v=1")

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, extractor: YtDlpExtractor) -> None:
        process = _process()
        process.communicate = MagicMock(return_value=None)
        with (
            patch("asyncio.create_subprocess_exec", return_value=process),
            patch("asyncio.wait_for", side_effect=asyncio.TimeoutError()),
        ):
            with pytest.raises(ExtractionTimeoutError):
                await extractor.extract("https://example.com/watch?v=1")

        process.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_unparseable_output(self, extractor: YtDlpExtractor) -> None:
        with patch("asyncio.create_subprocess_exec") as mock_subprocess:
            mock_subprocess.return_value = _process(b"this is not json")

            with pytest.raises(InvalidOutputError):
                await extractor.extract("https://example.com/watch?v=1")

    def test_all_failures_share_a_base(self) -> None:
        for exc_type in (
            ExtractorNotFoundError,
            ExtractionTimeoutError,
            ExtractorProcessError,
            InvalidOutputError,
        ):
            assert issubclass(exc_type, ExtractionError)


class TestCheckYtdlp:
    """Test the yt-dlp availability check"""

    @pytest.mark.asyncio
    async def test_available(self) -> None:
        with patch("asyncio.create_subprocess_exec") as mock_subprocess:
            mock_subprocess.return_value = _process(b"2024.08.06\n")

            result = await check_ytdlp()

        assert result.available is True
        assert result.version == "2024.08.06"

    @pytest.mark.asyncio
    async def test_not_installed(self) -> None:
        with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError()):
            result = await check_ytdlp("missing-yt-dlp")

        assert result.available is False
        assert result.error == "missing-yt-dlp not found"

    @pytest.mark.asyncio
    async def test_non_zero_exit(self) -> None:
        with patch("asyncio.create_subprocess_exec") as mock_subprocess:
            mock_subprocess.return_value = _process(returncode=2)

            result = await check_ytdlp()

        assert result.available is False
        assert "non-zero" in (result.error or "")
