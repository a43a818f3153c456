"""Format normalization.

Turns yt-dlp's raw format list into deduplicated, classified candidates.
Records that cannot be offered to a client (no URL, malformed URL, non-web
scheme) are dropped silently; normalization never raises for bad input.
"""

import re
from typing import Any, FrozenSet, Iterable, List, Optional, Set

import structlog

from extractor_api.core.validation import is_web_url
from extractor_api.models.formats import Candidate, MediaType, RawFormatRecord

logger = structlog.get_logger(__name__)

IMAGE_EXTENSIONS: FrozenSet[str] = frozenset({"jpg", "jpeg", "png", "webp", "gif"})

# yt-dlp uses the literal "none" for an absent audio or video track
NO_CODEC = "none"

_AUDIO_HINT = re.compile(r"audio", re.IGNORECASE)


def classify(record: RawFormatRecord) -> MediaType:
    """Classify a record; the first matching rule wins."""
    has_audio_codec = bool(record.acodec) and record.acodec != NO_CODEC
    if record.vcodec == NO_CODEC or (has_audio_codec and not record.vcodec):
        return MediaType.AUDIO

    if record.format and _AUDIO_HINT.search(record.format):
        return MediaType.AUDIO

    if record.ext and record.ext.lower() in IMAGE_EXTENSIONS:
        return MediaType.IMAGE

    return MediaType.VIDEO


def build_label(record: RawFormatRecord) -> str:
    """
    Build a human-readable label for a record.

    Preference order: ``format_note`` with ``"<height>p"``, either of those
    alone, the free-text ``format`` descriptor, the upper-cased extension,
    and finally ``"Unknown"``.
    """
    parts: List[str] = []
    note = record.format_note.strip() if record.format_note else ""
    height = f"{record.height}p" if record.height and record.height > 0 else ""

    if note:
        parts.append(note)
    if height and height != note:
        parts.append(height)
    if not parts and record.format and record.format.strip():
        parts.append(record.format.strip())

    label = " ".join(parts).strip()
    if label:
        return label

    if record.ext and record.ext.strip():
        return record.ext.strip().upper()
    return "Unknown"


def _declared_size(record: RawFormatRecord) -> Optional[int]:
    for size in (record.filesize, record.filesize_approx):
        if size is not None and size > 0:
            return size
    return None


def normalize(raw_formats: Optional[Iterable[Any]]) -> List[Candidate]:
    """
    Normalize raw format records into candidates.

    Args:
        raw_formats: RawFormatRecord instances, plain dicts, or junk

    Returns:
        Candidates in input order, one per distinct valid URL
    """
    candidates: List[Candidate] = []
    seen: Set[str] = set()
    dropped = 0

    for entry in raw_formats or ():
        record = entry if isinstance(entry, RawFormatRecord) else RawFormatRecord.from_dict(entry)
        url = record.url if record is not None else None
        if record is None or url is None or not is_web_url(url):
            dropped += 1
            continue

        if url in seen:
            dropped += 1
            continue
        seen.add(url)

        candidates.append(
            Candidate(
                url=url,
                type=classify(record),
                label=build_label(record),
                filesize_bytes=_declared_size(record),
                ext=record.ext or None,
                width=record.width,
                height=record.height,
                tbr=record.tbr,
                format_id=record.format_id,
            )
        )

    logger.debug("Formats normalized", kept=len(candidates), dropped=dropped)
    return candidates
