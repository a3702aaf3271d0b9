"""Codec policy: SDP rewrites applied before a description is sent or set.

Every operation takes an SDP body and returns a new one. A missing media
section, codec, connection line or option is never an error; the body is
returned unchanged.

Local descriptions (what we offer/answer) get the receive-side preferences,
remote descriptions get the send-side ones.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Mapping, Optional

import structlog

from rtcsig.core.constants import SdpConstants
from rtcsig.sdp.fmtp import fmtp_line_for_payload_type, remove_codec_param, set_codec_param
from rtcsig.sdp.lines import ScanDirection, find_line, find_line_in_range, join_lines, split_lines
from rtcsig.sdp.media import bandwidth_line, connection_line, media_range
from rtcsig.sdp.payload import (
    PayloadType,
    codec_name_for_payload_type,
    media_payload_types,
    payload_type_for_codec,
    payload_type_from_line,
    remove_codec_by_name,
    remove_codec_by_payload_type,
    set_default_codec,
)

if TYPE_CHECKING:
    from rtcsig.core.options import SdpOptions

logger = structlog.get_logger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_OPUS_FLAGS = (
    ("opus_stereo", SdpConstants.OPUS_STEREO),
    ("opus_fec", SdpConstants.OPUS_FEC),
    ("opus_dtx", SdpConstants.OPUS_DTX),
)


def _parse_int(value: Optional[str]) -> Optional[int]:
    """Leading integer of a string ("300kbps" -> 300), None if there is none."""
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def merge_constraints(
    cons1: Optional[Mapping[str, Any]], cons2: Optional[Mapping[str, Any]]
) -> Optional[Mapping[str, Any]]:
    """Shallow merge of two option mappings; keys of cons2 win.

    If either mapping is empty or None, the other one is returned as is.
    """
    if not cons1 or not cons2:
        return cons1 or cons2
    merged = dict(cons1)
    merged.update(cons2)
    return merged


def ice_candidate_type(candidate: str) -> Optional[str]:
    """Candidate type (host, srflx, prflx, relay) of an ICE candidate line."""
    parts = candidate.split(" ")
    return parts[7] if len(parts) > 7 else None


def maybe_set_opus_options(sdp: str, options: SdpOptions) -> str:
    """Apply the Opus stereo/FEC/DTX flags and max playback rate.

    Each flag sets its fmtp parameter to 1 when "true", removes it when
    "false", and does nothing otherwise. maxplaybackrate is only ever set.
    """
    for attr, param in _OPUS_FLAGS:
        flag = getattr(options, attr)
        if flag == SdpConstants.TRUE:
            sdp = set_codec_param(sdp, SdpConstants.OPUS, param, "1")
        elif flag == SdpConstants.FALSE:
            sdp = remove_codec_param(sdp, SdpConstants.OPUS, param)

    if options.opus_max_pbr:
        sdp = set_codec_param(
            sdp, SdpConstants.OPUS, SdpConstants.OPUS_MAX_PLAYBACK_RATE, options.opus_max_pbr
        )
    return sdp


def prefer_bitrate(sdp: str, bitrate: str | int, media_type: str) -> str:
    """Add a b=AS:<bitrate> line to the media section of media_type.

    The line goes right after the section's c= line (RFC 4566 ordering). An
    existing b=AS line between the c= line and the next section is replaced.

    Args:
        sdp: SDP body
        bitrate: Bandwidth in kbps
        media_type: "audio" or "video"

    Returns:
        Updated SDP body; unchanged if the section or its c= line is missing
    """
    lines = split_lines(sdp)

    media = media_range(lines, media_type)
    if media is None:
        logger.debug("Failed to add bandwidth line to sdp, as no m-line found", media_type=media_type)
        return sdp

    c_line_index = connection_line(lines, media)
    if c_line_index is None:
        logger.debug("Failed to add bandwidth line to sdp, as no c-line found", media_type=media_type)
        return sdp

    b_line_index = bandwidth_line(lines, c_line_index + 1, media.next_media_line_index)
    if b_line_index is not None:
        del lines[b_line_index]

    lines.insert(c_line_index + 1, f"b=AS:{bitrate}")
    return join_lines(lines)


def _maybe_set_bitrate(sdp: str, bitrate: Optional[str], media_type: str, direction: str) -> str:
    if not bitrate:
        return sdp
    logger.debug("Prefer bitrate", media_type=media_type, direction=direction, bitrate=bitrate)
    return prefer_bitrate(sdp, bitrate, media_type)


def maybe_set_audio_send_bitrate(sdp: str, options: SdpOptions) -> str:
    return _maybe_set_bitrate(sdp, options.audio_send_bitrate, "audio", "send")


def maybe_set_audio_receive_bitrate(sdp: str, options: SdpOptions) -> str:
    return _maybe_set_bitrate(sdp, options.audio_recv_bitrate, "audio", "receive")


def maybe_set_video_send_bitrate(sdp: str, options: SdpOptions) -> str:
    return _maybe_set_bitrate(sdp, options.video_send_bitrate, "video", "send")


def maybe_set_video_receive_bitrate(sdp: str, options: SdpOptions) -> str:
    return _maybe_set_bitrate(sdp, options.video_recv_bitrate, "video", "receive")


def maybe_set_video_send_initial_bitrate(sdp: str, options: SdpOptions) -> str:
    """Set x-google-min/max-bitrate on the video send codec.

    The min is the initial bitrate option as given ("500kbps" stays
    "500kbps"). The max is video_send_bitrate when given (the initial value is
    clamped down to it, and the clamped value is written back to options),
    otherwise the parsed initial bitrate.

    The codec is video_send_codec when given, else the first payload type on
    the video m= line.
    """
    initial_bitrate = _parse_int(options.video_send_initial_bitrate)
    if not initial_bitrate:
        return sdp

    max_bitrate = initial_bitrate
    bitrate = _parse_int(options.video_send_bitrate)
    if bitrate:
        if initial_bitrate > bitrate:
            logger.debug("Clamping initial bitrate to max bitrate", max_bitrate_kbps=bitrate)
            initial_bitrate = bitrate
            options.video_send_initial_bitrate = str(initial_bitrate)
        max_bitrate = bitrate

    lines = split_lines(sdp)
    m_line_index = find_line(lines, "m=", "video")
    if m_line_index is None:
        logger.debug("Failed to find video m-line")
        return sdp

    codec = options.video_send_codec
    if not codec:
        payload_types = media_payload_types(lines[m_line_index])
        if not payload_types:
            return sdp
        codec = codec_name_for_payload_type(lines, payload_types[0])
        if codec is None:
            return sdp

    sdp = set_codec_param(sdp, codec, SdpConstants.MIN_BITRATE, options.video_send_initial_bitrate)
    sdp = set_codec_param(sdp, codec, SdpConstants.MAX_BITRATE, str(max_bitrate))
    return sdp


def _red_partner_payload_type(fmtp_line: str) -> Optional[PayloadType]:
    """Payload type named by a red fmtp line: "a=fmtp:116 117/117" -> "117"."""
    _, _, rest = fmtp_line.partition(" ")
    token = rest.split("/")[0].split(";")[0].strip()
    try:
        return PayloadType(token)
    except ValueError:
        return None


def maybe_remove_video_fec(sdp: str, options: SdpOptions) -> str:
    """Strip red/ulpfec (and red's partner payload type) when video_fec is "false".

    Steps run in order. If red has no fmtp line, or its partner payload type
    cannot be read, the input body is returned untouched.
    """
    if options.video_fec != SdpConstants.FALSE:
        return sdp

    lines = split_lines(sdp)

    red_payload_type = payload_type_for_codec(lines, SdpConstants.RED)
    if red_payload_type is None:
        return sdp
    lines = remove_codec_by_payload_type(lines, red_payload_type)

    lines = remove_codec_by_name(lines, SdpConstants.ULPFEC)

    # Remove fmtp line associated with red codec.
    index = fmtp_line_for_payload_type(lines, red_payload_type)
    if index is None:
        return sdp
    rtx_payload_type = _red_partner_payload_type(lines[index])
    if rtx_payload_type is None:
        return sdp
    del lines[index]

    lines = remove_codec_by_payload_type(lines, rtx_payload_type)
    return join_lines(lines)


def maybe_prefer_codec(sdp: str, media_type: str, direction: str, codec: Optional[str]) -> str:
    """Promote codec to the front of the media_type m= line, if present.

    rtpmap lines are walked from the end of the body backwards: each step
    jumps to the nearest matching rtpmap at or before the cursor and promotes
    its payload type, and the walk stops as soon as no earlier match exists.
    Several matches (e.g. stereo variants) are promoted in turn, so the
    earliest one in the body ends up first.

    Args:
        sdp: SDP body
        media_type: "audio" or "video"
        direction: "send" or "receive", for logging only
        codec: NAME/RATE, e.g. "opus/48000"
    """
    if not codec:
        logger.debug("No codec preference", media_type=media_type, direction=direction)
        return sdp

    logger.debug("Prefer codec", media_type=media_type, direction=direction, codec=codec)

    lines = split_lines(sdp)

    m_line_index = find_line(lines, "m=", media_type)
    if m_line_index is None:
        return sdp

    i = len(lines) - 1
    while i >= 0:
        index = find_line_in_range(lines, i, 0, "a=rtpmap", codec, ScanDirection.DESC)
        if index is None:
            break
        i = index
        payload_type = payload_type_from_line(lines[index])
        if payload_type:
            lines[m_line_index] = set_default_codec(lines[m_line_index], payload_type)
        i -= 1

    return join_lines(lines)


def maybe_prefer_audio_send_codec(sdp: str, options: SdpOptions) -> str:
    return maybe_prefer_codec(sdp, "audio", "send", options.audio_send_codec)


def maybe_prefer_audio_receive_codec(sdp: str, options: SdpOptions) -> str:
    return maybe_prefer_codec(sdp, "audio", "receive", options.audio_recv_codec)


def maybe_prefer_video_send_codec(sdp: str, options: SdpOptions) -> str:
    return maybe_prefer_codec(sdp, "video", "send", options.video_send_codec)


def maybe_prefer_video_receive_codec(sdp: str, options: SdpOptions) -> str:
    return maybe_prefer_codec(sdp, "video", "receive", options.video_recv_codec)


def munge_local_description(sdp: str, options: SdpOptions) -> str:
    """Receive-side rewrites for a description we are about to set locally.

    Opus options describe what we are willing to receive, so they go here.
    """
    sdp = maybe_set_opus_options(sdp, options)
    sdp = maybe_prefer_audio_receive_codec(sdp, options)
    sdp = maybe_prefer_video_receive_codec(sdp, options)
    sdp = maybe_set_audio_receive_bitrate(sdp, options)
    sdp = maybe_set_video_receive_bitrate(sdp, options)
    sdp = maybe_remove_video_fec(sdp, options)
    return sdp


def munge_remote_description(sdp: str, options: SdpOptions) -> str:
    """Send-side rewrites for a description received from the remote peer."""
    sdp = maybe_prefer_audio_send_codec(sdp, options)
    sdp = maybe_prefer_video_send_codec(sdp, options)
    sdp = maybe_set_audio_send_bitrate(sdp, options)
    sdp = maybe_set_video_send_bitrate(sdp, options)
    sdp = maybe_set_video_send_initial_bitrate(sdp, options)
    sdp = maybe_remove_video_fec(sdp, options)
    return sdp
