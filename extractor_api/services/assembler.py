"""Response assembly: display ordering and human-readable sizes."""

import math
from numbers import Real
from typing import Any, Dict, List, Optional, Sequence

from extractor_api.models.formats import Candidate, MediaType

SIZE_UNITS = ("KB", "MB", "GB", "TB")
SIZE_STEP = 1024

UNKNOWN_SIZE = "Unknown"

# Video first, then audio, then images
TYPE_ORDER: Dict[MediaType, int] = {
    MediaType.VIDEO: 0,
    MediaType.AUDIO: 1,
    MediaType.IMAGE: 2,
}


def human_readable(value: Any) -> str:
    """
    Format a byte count for display.

    Examples:
        >>> human_readable(1023)
        '1023 B'
        >>> human_readable(1536)
        '1.5 KB'
        >>> human_readable(None)
        'Unknown'
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return UNKNOWN_SIZE
    size = float(value)
    if not math.isfinite(size):
        return UNKNOWN_SIZE

    if abs(size) < SIZE_STEP:
        return f"{int(size)} B"

    unit = -1
    while True:
        size /= SIZE_STEP
        unit += 1
        if abs(size) < SIZE_STEP or unit >= len(SIZE_UNITS) - 1:
            break
    return f"{size:.1f} {SIZE_UNITS[unit]}"


def _sort_key(candidate: Candidate) -> tuple:
    return (TYPE_ORDER.get(candidate.type, len(TYPE_ORDER)), -(candidate.filesize_bytes or 0))


def assemble(
    candidates: Sequence[Candidate],
    title: Optional[str] = None,
    thumbnail: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the public response payload.

    Candidates are ordered by type (video, audio, image) and then by
    descending size, unknown sizes last; ties keep their input order.

    Args:
        candidates: Resolved candidates
        title: Page title, included when present
        thumbnail: Thumbnail URL, included when present

    Returns:
        JSON-serializable payload with a ``formats`` list
    """
    formats: List[Dict[str, str]] = [
        {
            "label": candidate.label,
            "size": human_readable(candidate.filesize_bytes),
            "url": candidate.url,
            "type": candidate.type.value,
        }
        for candidate in sorted(candidates, key=_sort_key)
    ]

    payload: Dict[str, Any] = {"formats": formats}
    if title:
        payload["title"] = title
    if thumbnail:
        payload["thumbnail"] = thumbnail
    return payload
