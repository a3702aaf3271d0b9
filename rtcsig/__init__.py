"""rtcsig: WebRTC signaling client with SDP codec policy rewriting."""

__version__ = "0.1.0"
