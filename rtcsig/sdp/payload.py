"""RTP payload type resolution and m= line codec list edits.

Payload types stay strings end to end so that whatever the remote side wrote
is echoed back unchanged.
"""

import re
from dataclasses import dataclass
from typing import Optional

from rtcsig.sdp.lines import find_line

RTPMAP_PT_PATTERN = re.compile(r"a=rtpmap:(\d+) [a-zA-Z0-9-]+/\d+")
RTPMAP_PATTERN = re.compile(r"a=rtpmap:(\d+) ([a-zA-Z0-9-]+)/(\d+)(?:/(\d+))?")
_DIGITS = re.compile(r"[0-9]+")

# m=<media> <port> <proto> <fmt> ...
MLINE_FIXED_FIELDS = 3


class PayloadType(str):
    """RTP payload type carried in its original textual form."""

    def __new__(cls, value: str) -> "PayloadType":
        if not isinstance(value, str) or not _DIGITS.fullmatch(value):
            raise ValueError(f"Invalid payload type: {value!r}")
        return super().__new__(cls, value)


@dataclass(frozen=True)
class RtpMap:
    """Parsed a=rtpmap attribute."""

    payload_type: PayloadType
    codec_name: str
    clock_rate: str
    channels: Optional[str] = None

    @property
    def codec(self) -> str:
        """Codec in NAME/RATE form, e.g. "opus/48000"."""
        return f"{self.codec_name}/{self.clock_rate}"


def parse_rtpmap(line: str) -> Optional[RtpMap]:
    """Parse an ``a=rtpmap:<pt> <name>/<rate>[/<channels>]`` line."""
    match = RTPMAP_PATTERN.match(line)
    if not match:
        return None
    pt, name, rate, channels = match.groups()
    return RtpMap(PayloadType(pt), name, rate, channels)


def payload_type_from_line(line: str) -> Optional[PayloadType]:
    """Extract the payload type from an a=rtpmap line.

    Args:
        line: SDP line, e.g. "a=rtpmap:111 opus/48000/2"

    Returns:
        Payload type, or None if the line is not a well-formed rtpmap
    """
    match = RTPMAP_PT_PATTERN.match(line)
    return PayloadType(match.group(1)) if match else None


def payload_type_for_codec(lines: list[str], codec: str) -> Optional[PayloadType]:
    """Resolve a codec to its payload type via the first matching a=rtpmap.

    Args:
        lines: SDP lines
        codec: Bare codec name ("red") or NAME/RATE ("opus/48000"),
            matched case-insensitively as a substring

    Returns:
        Payload type, or None if no rtpmap line matches
    """
    index = find_line(lines, "a=rtpmap", codec)
    if index is None:
        return None
    return payload_type_from_line(lines[index])


def rtpmap_line_for_payload_type(lines: list[str], payload_type: str) -> Optional[int]:
    """Find the a=rtpmap line declaring exactly this payload type."""
    return find_line(lines, f"a=rtpmap:{payload_type} ")


def codec_name_for_payload_type(lines: list[str], payload_type: str) -> Optional[str]:
    """Reverse lookup: bare codec name for a payload type, e.g. "VP8"."""
    index = rtpmap_line_for_payload_type(lines, payload_type)
    if index is None:
        return None
    rtpmap = parse_rtpmap(lines[index])
    return rtpmap.codec_name if rtpmap else None


def media_payload_types(m_line: str) -> list[str]:
    """Payload types listed on an m= line, in order."""
    return m_line.split(" ")[MLINE_FIXED_FIELDS:]


def set_default_codec(m_line: str, payload_type: str) -> str:
    """Return the m= line with payload_type moved to the front of its codec list.

    The relative order of the other payload types is preserved.
    """
    elements = m_line.split(" ")
    new_line = elements[:MLINE_FIXED_FIELDS]
    new_line.append(payload_type)
    new_line.extend(pt for pt in elements[MLINE_FIXED_FIELDS:] if pt != payload_type)
    return " ".join(new_line)


def remove_payload_type_from_mline(m_line: str, payload_type: str) -> str:
    """Return the m= line with every occurrence of payload_type dropped."""
    elements = m_line.split(" ")
    kept = [pt for pt in elements[MLINE_FIXED_FIELDS:] if pt != payload_type]
    return " ".join(elements[:MLINE_FIXED_FIELDS] + kept)


def _strip_from_video_mline(lines: list[str], payload_type: str) -> list[str]:
    m_line_index = find_line(lines, "m=", "video")
    if m_line_index is not None:
        lines[m_line_index] = remove_payload_type_from_mline(lines[m_line_index], payload_type)
    return lines


def remove_codec_by_name(lines: list[str], codec: str) -> list[str]:
    """Remove a codec's rtpmap line and its payload type from the video m= line.

    Returns:
        New list of lines; unchanged copy if the codec is not declared
    """
    lines = list(lines)
    index = find_line(lines, "a=rtpmap", codec)
    if index is None:
        return lines
    payload_type = payload_type_from_line(lines[index])
    if payload_type is None:
        return lines
    del lines[index]
    return _strip_from_video_mline(lines, payload_type)


def remove_codec_by_payload_type(lines: list[str], payload_type: str) -> list[str]:
    """Remove the rtpmap line for payload_type and strip it from the video m= line."""
    lines = list(lines)
    index = rtpmap_line_for_payload_type(lines, payload_type)
    if index is None:
        return lines
    del lines[index]
    return _strip_from_video_mline(lines, payload_type)
