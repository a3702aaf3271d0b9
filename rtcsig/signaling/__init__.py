"""WebSocket signaling around an injected peer connection.

- SignalingClient: message dispatch, offer/answer flows, keepalive
- PeerConnection: protocol a WebRTC stack must implement
- SessionDescription: SDP text plus offer/answer type
"""

__all__ = [
    "MessageType",
    "PeerConnection",
    "PeerConnectionFactory",
    "PeerState",
    "SessionDescription",
    "SignalingClient",
    "SignalingEvent",
    "SignalingEventType",
    "SignalingProtocolError",
]

from rtcsig.signaling.messages import MessageType, SignalingProtocolError
from rtcsig.signaling.peer import (
    PeerConnection,
    PeerConnectionFactory,
    PeerState,
    SessionDescription,
    SignalingEvent,
    SignalingEventType,
)
from rtcsig.signaling.client import SignalingClient
