"""SDP and signaling constants."""


class SdpConstants:
    """Codec names and fmtp parameter keys used by the policy engine."""

    # Codecs (NAME/RATE or bare name, matched against a=rtpmap)
    OPUS = "opus/48000"
    RED = "red"
    ULPFEC = "ulpfec"

    # Opus fmtp parameters
    OPUS_STEREO = "stereo"
    OPUS_FEC = "useinbandfec"
    OPUS_DTX = "usedtx"
    OPUS_MAX_PLAYBACK_RATE = "maxplaybackrate"

    # Video bitrate fmtp parameters (kbps)
    MIN_BITRATE = "x-google-min-bitrate"
    MAX_BITRATE = "x-google-max-bitrate"

    # Tri-state flag values
    TRUE = "true"
    FALSE = "false"


class SignalingConstants:
    """Signaling session defaults."""

    IDLE_SESSION_ID = "0-0"
    KEEPALIVE_INTERVAL_S = 12.0
    USER_ID_DIGITS = 6
