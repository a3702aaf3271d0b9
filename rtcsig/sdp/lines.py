"""Line-level access to SDP bodies.

An SDP body is handled as a list of lines split on CRLF. Lookups are plain
prefix tests with an optional case-insensitive substring filter, in either
scan direction.
"""

from enum import Enum
from typing import Optional

CRLF = "\r\n"


class ScanDirection(str, Enum):
    """Direction of a line search."""

    ASC = "asc"
    DESC = "desc"


def split_lines(sdp: str) -> list[str]:
    """Split an SDP body into lines.

    Only CRLF separates lines; a body using bare LF comes back as one line.
    """
    return sdp.split(CRLF)


def join_lines(lines: list[str]) -> str:
    """Join lines back into an SDP body."""
    return CRLF.join(lines)


def _matches(line: str, prefix: str, substr: Optional[str]) -> bool:
    if not line.startswith(prefix):
        return False
    return not substr or substr.lower() in line.lower()


def find_line(lines: list[str], prefix: str, substr: Optional[str] = None) -> Optional[int]:
    """Find the first line starting with prefix (and containing substr).

    Args:
        lines: SDP lines
        prefix: Literal line prefix, e.g. "a=rtpmap"
        substr: Optional case-insensitive substring the line must contain

    Returns:
        Line index, or None if no line matches
    """
    return find_line_in_range(lines, 0, -1, prefix, substr)


def find_line_in_range(
    lines: list[str],
    start: int,
    end: int,
    prefix: str,
    substr: Optional[str] = None,
    direction: ScanDirection | str = ScanDirection.ASC,
) -> Optional[int]:
    """Find a matching line within a sub-range of lines.

    Ascending scans cover ``lines[start:end]``, where ``end == -1`` means the
    end of the body. Descending scans walk from ``start`` down to the first
    line (``end`` is not consulted), where ``start == -1`` means the last line.

    Args:
        lines: SDP lines
        start: First index to examine
        end: Exclusive upper bound for ascending scans
        prefix: Literal line prefix
        substr: Optional case-insensitive substring the line must contain
        direction: ScanDirection.ASC or ScanDirection.DESC

    Returns:
        Line index, or None if no line matches
    """
    if ScanDirection(direction) is ScanDirection.ASC:
        real_end = end if end != -1 else len(lines)
        for i in range(start, min(real_end, len(lines))):
            if _matches(lines[i], prefix, substr):
                return i
    else:
        real_start = start if start != -1 else len(lines) - 1
        for i in range(min(real_start, len(lines) - 1), -1, -1):
            if _matches(lines[i], prefix, substr):
                return i
    return None
