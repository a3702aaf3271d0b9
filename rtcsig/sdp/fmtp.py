"""Format parameter (a=fmtp) parsing and editing.

An fmtp line looks like ``a=fmtp:111 minptime=10;useinbandfec=1``. Editing a
parameter goes through parse -> modify -> write; a record whose last
parameter was removed is written as "no line" and dropped from the body.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from rtcsig.sdp.lines import find_line, join_lines, split_lines
from rtcsig.sdp.payload import PayloadType, payload_type_for_codec, payload_type_from_line

FMTP_PATTERN = re.compile(r"a=fmtp:(\d+)")


@dataclass
class FmtpRecord:
    """Structured a=fmtp line: payload type plus key/value parameters."""

    payload_type: PayloadType
    params: dict[str, str] = field(default_factory=dict)


def parse_fmtp_line(line: str) -> Optional[FmtpRecord]:
    """Split an fmtp line into payload type and parameters.

    Parameters are the ``;``-separated ``key=value`` pairs after the first
    space. Pairs that are not exactly ``key=value`` are dropped.

    Args:
        line: SDP line, e.g. "a=fmtp:111 minptime=10;useinbandfec=1"

    Returns:
        FmtpRecord, or None if the line is not an a=fmtp:<digits> line
    """
    match = FMTP_PATTERN.match(line)
    if not match:
        return None

    params: dict[str, str] = {}
    _, sep, rest = line.partition(" ")
    if sep:
        for key_value in rest.split(";"):
            pair = key_value.split("=")
            if len(pair) == 2:
                params[pair[0]] = pair[1]

    return FmtpRecord(payload_type=PayloadType(match.group(1)), params=params)


def write_fmtp_line(record: Optional[FmtpRecord]) -> Optional[str]:
    """Serialize an FmtpRecord.

    Returns:
        The fmtp line, or None when there is nothing to write (the caller
        should delete the line)
    """
    if record is None or record.payload_type is None or record.params is None:
        return None
    if not record.params:
        return None
    key_values = ";".join(f"{key}={value}" for key, value in record.params.items())
    return f"a=fmtp:{record.payload_type} {key_values}"


def fmtp_line_for_payload_type(lines: list[str], payload_type: str) -> Optional[int]:
    """Find the a=fmtp line for exactly this payload type."""
    return find_line(lines, f"a=fmtp:{payload_type} ")


def find_fmtp_line(lines: list[str], codec: str) -> Optional[int]:
    """Find the fmtp line of a codec (resolved through its rtpmap)."""
    payload_type = payload_type_for_codec(lines, codec)
    if payload_type is None:
        return None
    return fmtp_line_for_payload_type(lines, payload_type)


def set_codec_param(sdp: str, codec: str, param: str, value: str) -> str:
    """Set an fmtp parameter on a codec, adding the fmtp line if needed.

    A new fmtp line is inserted right after the codec's rtpmap line.

    Args:
        sdp: SDP body
        codec: Codec name or NAME/RATE, e.g. "opus/48000"
        param: Parameter name
        value: Parameter value

    Returns:
        Updated SDP body; unchanged if the codec is not declared
    """
    lines = split_lines(sdp)

    fmtp_index = find_fmtp_line(lines, codec)
    if fmtp_index is None:
        index = find_line(lines, "a=rtpmap", codec)
        if index is None:
            return sdp
        payload_type = payload_type_from_line(lines[index])
        if payload_type is None:
            return sdp
        record = FmtpRecord(payload_type=payload_type, params={param: value})
        lines.insert(index + 1, write_fmtp_line(record))
    else:
        record = parse_fmtp_line(lines[fmtp_index])
        record.params[param] = value
        lines[fmtp_index] = write_fmtp_line(record)

    return join_lines(lines)


def remove_codec_param(sdp: str, codec: str, param: str) -> str:
    """Remove an fmtp parameter from a codec.

    The fmtp line is deleted when its last parameter goes away.

    Returns:
        Updated SDP body; unchanged if the codec has no fmtp line
    """
    lines = split_lines(sdp)

    fmtp_index = find_fmtp_line(lines, codec)
    if fmtp_index is None:
        return sdp

    record = parse_fmtp_line(lines[fmtp_index])
    if param not in record.params:
        return sdp
    del record.params[param]

    new_line = write_fmtp_line(record)
    if new_line is None:
        del lines[fmtp_index]
    else:
        lines[fmtp_index] = new_line

    return join_lines(lines)
