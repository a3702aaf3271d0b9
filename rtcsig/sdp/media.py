"""Media section lookup.

A media section runs from its ``m=`` line up to (not including) the next
``m=`` line, or to the end of the body.
"""

from dataclasses import dataclass
from typing import Optional

from rtcsig.sdp.lines import find_line, find_line_in_range


@dataclass(frozen=True)
class MediaRange:
    """Half-open line range [media_line_index, next_media_line_index)."""

    media_line_index: int
    next_media_line_index: int

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.media_line_index <= index < self.next_media_line_index


def media_range(lines: list[str], media_type: str) -> Optional[MediaRange]:
    """Locate the media section for a media type.

    Args:
        lines: SDP lines
        media_type: "audio" or "video"

    Returns:
        MediaRange, or None if the body has no such m= line
    """
    m_line_index = find_line(lines, "m=", media_type)
    if m_line_index is None:
        return None

    next_m_line_index = find_line_in_range(lines, m_line_index + 1, -1, "m=")
    if next_m_line_index is None:
        next_m_line_index = len(lines)

    return MediaRange(m_line_index, next_m_line_index)


def connection_line(lines: list[str], media: MediaRange) -> Optional[int]:
    """Find the c= line inside a media section (after its m= line)."""
    return find_line_in_range(
        lines, media.media_line_index + 1, media.next_media_line_index, "c="
    )


def bandwidth_line(lines: list[str], start: int, end: int) -> Optional[int]:
    """Find an application-specific bandwidth (b=AS) line in [start, end)."""
    return find_line_in_range(lines, start, end, "b=AS")
