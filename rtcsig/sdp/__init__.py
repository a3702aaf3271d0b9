"""SDP rewriting engine.

Line-oriented SDP surgery used during WebRTC negotiation:
- lines: CRLF line splitting and prefix/substring search
- media: media section (m= ... next m=) lookup
- payload: rtpmap payload type resolution and m= codec list edits
- fmtp: a=fmtp parsing and parameter upsert/removal
- policy: codec preference, bitrate caps, Opus options, FEC removal
"""

__all__ = [
    "FmtpRecord",
    "MediaRange",
    "PayloadType",
    "merge_constraints",
    "munge_local_description",
    "munge_remote_description",
    "parse_fmtp_line",
    "prefer_bitrate",
    "write_fmtp_line",
]

from rtcsig.sdp.fmtp import FmtpRecord, parse_fmtp_line, write_fmtp_line
from rtcsig.sdp.media import MediaRange
from rtcsig.sdp.payload import PayloadType
from rtcsig.sdp.policy import (
    merge_constraints,
    munge_local_description,
    munge_remote_description,
    prefer_bitrate,
)
