"""Signaling message envelope.

Messages are JSON objects with a ``type`` field. Incoming messages carry
their payload under ``data``; outgoing messages are flat.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class MessageType(str, Enum):
    """Signaling message types."""

    NEW = "new"
    INVITE = "invite"
    RINGING = "ringing"
    OFFER = "offer"
    ANSWER = "answer"
    CANDIDATE = "candidate"
    PEERS = "peers"
    LEAVE = "leave"
    BYE = "bye"
    KEEPALIVE = "keepalive"


class SignalingProtocolError(ValueError):
    """Raised for messages that cannot be decoded."""


@dataclass
class SignalingMessage:
    """Decoded incoming message."""

    type: str
    data: Any = None
    raw: Dict[str, Any] = field(default_factory=dict)


def encode_message(message: Dict[str, Any]) -> str:
    """Serialize an outgoing message.

    Raises:
        SignalingProtocolError: If the message has no type
    """
    if "type" not in message:
        raise SignalingProtocolError("Message has no 'type' field")
    msg_type = message["type"]
    if isinstance(msg_type, MessageType):
        message = {**message, "type": msg_type.value}
    return json.dumps(message)


def decode_message(raw: str | bytes) -> SignalingMessage:
    """Parse an incoming message.

    Raises:
        SignalingProtocolError: If the payload is not a JSON object with a type
    """
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SignalingProtocolError(f"Invalid JSON: {e}")

    if not isinstance(parsed, dict) or "type" not in parsed:
        raise SignalingProtocolError("Message has no 'type' field")

    return SignalingMessage(type=parsed["type"], data=parsed.get("data"), raw=parsed)
