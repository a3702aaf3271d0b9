"""Peer connection protocol and session types.

The signaling client never builds a peer connection itself. A factory
implementing PeerConnectionFactory is passed in, so any WebRTC stack (or a
test double) can sit behind it.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional, Protocol, runtime_checkable

DESCRIPTION_TYPES = {"offer", "pranswer", "answer", "rollback"}


class PeerState(Enum):
    """Negotiation state of one peer connection."""

    IDLE = auto()
    OFFERING = auto()
    ANSWERING = auto()
    CONNECTED = auto()
    CLOSED = auto()


class SignalingEventType(Enum):
    """Events surfaced to the application."""

    CONNECTED = auto()
    DISCONNECTED = auto()
    ERROR = auto()
    PEERS = auto()
    NEW_CALL = auto()
    LEAVE = auto()
    CALL_END = auto()


@dataclass
class SignalingEvent:
    """Signaling event data."""

    type: SignalingEventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = 0.0
    error: Optional[str] = None


@dataclass
class SessionDescription:
    """One end of a session: SDP text plus its offer/answer role."""

    sdp: str
    type: str

    def __post_init__(self) -> None:
        if self.type not in DESCRIPTION_TYPES:
            raise ValueError(
                f"'type' must be in {sorted(DESCRIPTION_TYPES)} (got '{self.type}')"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionDescription":
        """Build from a signaling payload ({"type": ..., "sdp": ...}).

        Raises:
            ValueError: If a field is missing or the type is unknown
        """
        try:
            return cls(sdp=data["sdp"], type=data["type"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid session description: {e}")

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "sdp": self.sdp}


@runtime_checkable
class PeerConnection(Protocol):
    """What the signaling client needs from a WebRTC peer connection."""

    @property
    def local_description(self) -> Optional[SessionDescription]:
        """Description set by set_local_description, if any."""
        ...

    @property
    def remote_description(self) -> Optional[SessionDescription]:
        """Description set by set_remote_description, if any."""
        ...

    @abstractmethod
    async def create_offer(self) -> SessionDescription:
        """Create an offer.

        Raises:
            RuntimeError: If the underlying stack rejects the request
        """
        ...

    @abstractmethod
    async def create_answer(self) -> SessionDescription:
        """Create an answer to the current remote offer."""
        ...

    @abstractmethod
    async def set_local_description(self, description: SessionDescription) -> None:
        """Apply a local description.

        Raises:
            ValueError: If the description is rejected
        """
        ...

    @abstractmethod
    async def set_remote_description(self, description: SessionDescription) -> None:
        """Apply a remote description.

        Raises:
            ValueError: If the description is rejected
        """
        ...

    @abstractmethod
    async def add_ice_candidate(self, candidate: Dict[str, Any]) -> None:
        """Add a remote ICE candidate."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the connection and release media."""
        ...


class PeerConnectionFactory(Protocol):
    """Creates a peer connection for a remote peer and media kind."""

    def __call__(self, peer_id: str, media: str) -> PeerConnection:
        ...
