"""Format data models for the extraction pipeline.

yt-dlp output is untrusted: any field may be missing, null, or of an
unexpected type. ``RawFormatRecord.from_dict`` and
``ExtractionMetadata.from_dict`` accept anything and keep only the values
they can interpret.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional


class MediaType(str, Enum):
    """Best-effort classification of a media variant."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    number = _as_number(value)
    if number is None or number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number)


@dataclass(frozen=True)
class RawFormatRecord:
    """A single entry of yt-dlp's ``formats`` list. Every field is optional."""

    url: Optional[str] = None
    vcodec: Optional[str] = None
    acodec: Optional[str] = None
    format: Optional[str] = None
    format_note: Optional[str] = None
    height: Optional[int] = None
    width: Optional[int] = None
    tbr: Optional[float] = None
    ext: Optional[str] = None
    filesize: Optional[int] = None
    filesize_approx: Optional[int] = None
    format_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["RawFormatRecord"]:
        """Build a record from arbitrary input, or None if it is not a mapping."""
        if not isinstance(data, Mapping):
            return None
        return cls(
            url=_as_str(data.get("url")),
            vcodec=_as_str(data.get("vcodec")),
            acodec=_as_str(data.get("acodec")),
            format=_as_str(data.get("format")),
            format_note=_as_str(data.get("format_note")),
            height=_as_int(data.get("height")),
            width=_as_int(data.get("width")),
            tbr=_as_number(data.get("tbr")),
            ext=_as_str(data.get("ext")),
            filesize=_as_int(data.get("filesize")),
            filesize_approx=_as_int(data.get("filesize_approx")),
            format_id=_as_str(data.get("format_id")),
        )


@dataclass
class Candidate:
    """A normalized, deduplicated and classified format.

    Only ``filesize_bytes`` changes after construction (filled in by the
    size resolver).
    """

    url: str
    type: MediaType
    label: str
    filesize_bytes: Optional[int] = None
    ext: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    tbr: Optional[float] = None
    format_id: Optional[str] = None


@dataclass
class ExtractionMetadata:
    """Metadata returned by the extractor for one page URL."""

    title: Optional[str] = None
    thumbnail: Optional[str] = None
    formats: List[RawFormatRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExtractionMetadata":
        """Build metadata from a parsed yt-dlp JSON object.

        Entries of ``formats`` that are not objects are dropped here; a
        missing or malformed ``formats`` value yields an empty list.
        """
        raw_formats = data.get("formats")
        formats: List[RawFormatRecord] = []
        if isinstance(raw_formats, list):
            for entry in raw_formats:
                record = RawFormatRecord.from_dict(entry)
                if record is not None:
                    formats.append(record)

        return cls(
            title=_as_str(data.get("title")),
            thumbnail=_as_str(data.get("thumbnail")),
            formats=formats,
        )
