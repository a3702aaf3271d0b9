"""WebSocket signaling client.

Flow for an outgoing call:
1. invite(): create peer connection -> create offer -> munge -> set local -> send "offer"
2. "answer" received: munge -> set remote

Flow for an incoming call:
1. "offer" received: create peer connection -> munge -> set remote
2. create answer -> munge -> set local -> send "answer"

ICE candidates are relayed in both directions ("candidate" messages), and
"bye"/"leave" tear the peer connection down. Every description passes through
the SDP policy engine with the client's SdpOptions before it is applied.
"""

import asyncio
import random
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

import structlog
import websockets

from rtcsig import __version__
from rtcsig.config import config
from rtcsig.core.constants import SignalingConstants
from rtcsig.core.options import SdpOptions
from rtcsig.sdp.policy import munge_local_description, munge_remote_description
from rtcsig.signaling.messages import (
    MessageType,
    SignalingMessage,
    SignalingProtocolError,
    decode_message,
    encode_message,
)
from rtcsig.signaling.peer import (
    PeerConnection,
    PeerConnectionFactory,
    PeerState,
    SessionDescription,
    SignalingEvent,
    SignalingEventType,
)

Connector = Callable[[str], Awaitable[Any]]


def _peer_id(value: Any) -> Optional[str]:
    """Peer ids arrive as strings or numbers; a missing one stays None."""
    return None if value is None else str(value)


class SignalingClient:
    """Signaling client for one local user and any number of peers."""

    CONNECT_TIMEOUT_S = 10.0

    def __init__(
        self,
        url: str,
        name: str,
        peer_factory: PeerConnectionFactory,
        options: Optional[SdpOptions] = None,
        connector: Optional[Connector] = None,
        keepalive_interval: Optional[float] = None
    ) -> None:
        """Initialize signaling client.

        Args:
            url: Signaling server WebSocket URL
            name: Display name announced to the server
            peer_factory: Creates a peer connection for (peer_id, media)
            options: SDP rewrite options (defaults to Opus stereo on)
            connector: Coroutine opening the WebSocket (defaults to websockets.connect)
            keepalive_interval: Seconds between keepalives (defaults to config)
        """
        self._url = url
        self._name = name
        self._peer_factory = peer_factory
        self._options = options if options is not None else SdpOptions(opus_stereo="true")
        self._connector = connector or websockets.connect
        self._keepalive_interval = (
            keepalive_interval
            if keepalive_interval is not None
            else config.signaling.keepalive_interval
        )

        self._ws: Optional[Any] = None
        self._connected = False

        self.self_id = ""
        self.session_id = SignalingConstants.IDLE_SESSION_ID

        self._peers: Dict[str, PeerConnection] = {}
        self._states: Dict[str, PeerState] = {}

        self._event_queue: asyncio.Queue[SignalingEvent] = asyncio.Queue()
        self._keepalive_task: Optional[asyncio.Task[None]] = None
        self._keepalive_count = 0

        self._handlers: Dict[str, Callable[[SignalingMessage], Awaitable[None]]] = {
            MessageType.INVITE.value: self._on_call_progress,
            MessageType.RINGING.value: self._on_call_progress,
            MessageType.OFFER.value: self._on_offer,
            MessageType.ANSWER.value: self._on_answer,
            MessageType.CANDIDATE.value: self._on_candidate,
            MessageType.PEERS.value: self._on_peers,
            MessageType.LEAVE.value: self._on_leave,
            MessageType.BYE.value: self._on_bye,
            MessageType.KEEPALIVE.value: self._on_keepalive,
        }

        self._logger = structlog.get_logger(__name__)

    @property
    def is_connected(self) -> bool:
        """Check if connected."""
        return self._connected

    @property
    def options(self) -> SdpOptions:
        """SDP rewrite options in effect."""
        return self._options

    @property
    def peers(self) -> Dict[str, PeerConnection]:
        """Open peer connections by peer id."""
        return dict(self._peers)

    def peer_state(self, peer_id: str) -> PeerState:
        """Negotiation state of a peer (IDLE if unknown)."""
        return self._states.get(str(peer_id), PeerState.IDLE)

    async def connect(self) -> None:
        """Open the signaling socket and register with the server.

        Raises:
            ConnectionError: If the socket cannot be opened
        """
        if self._connected:
            return

        try:
            async with asyncio.timeout(self.CONNECT_TIMEOUT_S):
                self._ws = await self._connector(self._url)
        except Exception as e:
            raise ConnectionError(f"Failed to connect to signaling server: {e}")

        self._connected = True
        self.self_id = self._random_user_id()
        self._logger.info("Signaling connected", url=self._url, self_id=self.self_id)

        await self._send({
            "type": MessageType.NEW,
            "user_agent": f"rtcsig/{__version__}",
            "name": self._name,
            "id": self.self_id,
        })

        self._keepalive_task = asyncio.create_task(
            self._keepalive_loop(),
            name="signaling-keepalive"
        )

        await self._emit(SignalingEventType.CONNECTED, {"id": self.self_id})

    async def run(self) -> None:
        """Read and dispatch messages until the socket closes."""
        if not self._ws:
            raise ConnectionError("Not connected")

        try:
            async for raw in self._ws:
                await self.handle_message(raw)
        except websockets.exceptions.ConnectionClosed:
            self._logger.warning("Signaling connection closed")
        finally:
            self._connected = False
            await self._emit(SignalingEventType.DISCONNECTED)

    async def close(self) -> None:
        """Stop keepalives, close all peer connections and the socket."""
        if self._keepalive_task:
            self._keepalive_task.cancel()
            try:
                await self._keepalive_task
            except asyncio.CancelledError:
                self._logger.debug("Keepalive task cancelled")
            self._keepalive_task = None

        for peer_id in list(self._peers):
            await self._close_peer(peer_id)

        if self._ws:
            await self._ws.close()
            self._ws = None

        self._connected = False
        self._logger.info("Signaling disconnected")

    async def events(self) -> AsyncIterator[SignalingEvent]:
        """Iterate over signaling events.

        Yields:
            Signaling events (CONNECTED, NEW_CALL, PEERS, CALL_END, ...)
        """
        while self._connected or not self._event_queue.empty():
            try:
                event = await asyncio.wait_for(self._event_queue.get(), timeout=1.0)
                yield event
            except asyncio.TimeoutError:
                continue

    async def handle_message(self, raw: str | bytes) -> None:
        """Decode one message and dispatch it by type.

        Decode errors and handler failures are logged and reported as ERROR
        events; they never propagate.
        """
        try:
            message = decode_message(raw)
        except SignalingProtocolError as e:
            self._logger.error("Failed to decode message", error=str(e))
            return

        self._logger.info("Signaling message received", type=message.type, data=message.data)

        handler = self._handlers.get(message.type)
        if handler is None:
            self._logger.error("Unrecognized message", message=message.raw)
            return

        try:
            await handler(message)
        except Exception as e:
            self._logger.error(
                "Signaling handler error", type=message.type, error=str(e), exc_info=True
            )
            await self._emit(SignalingEventType.ERROR, {"type": message.type}, error=str(e))

    async def invite(self, peer_id: str, media: str) -> None:
        """Call a peer: create a peer connection and send it an offer.

        Args:
            peer_id: Remote peer id
            media: "audio" or "video"
        """
        peer_id = str(peer_id)
        self.session_id = f"{self.self_id}-{peer_id}"
        pc = self._create_peer_connection(peer_id, media)
        await self._emit(
            SignalingEventType.NEW_CALL,
            {"id": self.self_id, "session_id": self.session_id}
        )
        await self._create_offer(pc, peer_id, media)

    async def bye(self) -> None:
        """Hang up the current session."""
        await self._send({
            "type": MessageType.BYE,
            "session_id": self.session_id,
            "from": self.self_id,
        })

    async def send_candidate(self, peer_id: str, candidate: Dict[str, Any]) -> None:
        """Relay a local ICE candidate to a peer."""
        await self._send({
            "type": MessageType.CANDIDATE,
            "to": str(peer_id),
            "candidate": candidate,
            "session_id": self.session_id,
        })

    def _create_peer_connection(self, peer_id: str, media: str) -> PeerConnection:
        pc = self._peer_factory(peer_id, media)
        self._peers[peer_id] = pc
        self._states[peer_id] = PeerState.IDLE
        self._logger.info("Peer connection created", peer_id=peer_id, media=media)
        return pc

    async def _close_peer(self, peer_id: str) -> bool:
        pc = self._peers.pop(peer_id, None)
        if pc is None:
            return False
        await pc.close()
        self._states[peer_id] = PeerState.CLOSED
        return True

    def _local(self, description: SessionDescription) -> SessionDescription:
        sdp = munge_local_description(description.sdp, self._options)
        return SessionDescription(sdp=sdp, type=description.type)

    def _remote(self, description: SessionDescription) -> SessionDescription:
        sdp = munge_remote_description(description.sdp, self._options)
        return SessionDescription(sdp=sdp, type=description.type)

    async def _create_offer(self, pc: PeerConnection, peer_id: str, media: str) -> None:
        self._states[peer_id] = PeerState.OFFERING
        try:
            offer = await pc.create_offer()
            self._logger.debug("createOffer (before)", sdp=offer.sdp)
            offer = self._local(offer)
            self._logger.debug("createOffer (after)", sdp=offer.sdp)
            await pc.set_local_description(offer)
        except Exception as e:
            await self._negotiation_failed(peer_id, e)
            return

        local = pc.local_description or offer
        await self._send({
            "type": MessageType.OFFER,
            "to": peer_id,
            "media": media,
            "description": local.to_dict(),
            "session_id": self.session_id,
        })

    async def _negotiation_failed(self, peer_id: str, error: Exception) -> None:
        self._logger.error("Negotiation failed", peer_id=peer_id, error=str(error))
        await self._emit(SignalingEventType.ERROR, {"id": peer_id}, error=str(error))

    async def _on_call_progress(self, message: SignalingMessage) -> None:
        self._logger.info("Call progress", type=message.type, data=message.data)

    async def _on_keepalive(self, message: SignalingMessage) -> None:
        self._logger.debug("keepalive response")

    async def _on_offer(self, message: SignalingMessage) -> None:
        data = message.data or {}
        from_id = _peer_id(data.get("from"))
        if from_id is None:
            raise SignalingProtocolError("offer has no 'from' field")
        media = data.get("media", "audio")
        self.session_id = data.get("session_id", self.session_id)

        await self._emit(
            SignalingEventType.NEW_CALL,
            {"id": from_id, "session_id": self.session_id}
        )

        pc = self._create_peer_connection(from_id, media)
        if not data.get("description"):
            return

        remote = self._remote(SessionDescription.from_dict(data["description"]))
        self._states[from_id] = PeerState.ANSWERING
        try:
            await pc.set_remote_description(remote)
            if remote.type != "offer":
                return
            answer = await pc.create_answer()
            self._logger.debug("createAnswer (before)", sdp=answer.sdp)
            answer = self._local(answer)
            self._logger.debug("createAnswer (after)", sdp=answer.sdp)
            await pc.set_local_description(answer)
        except Exception as e:
            await self._negotiation_failed(from_id, e)
            return

        local = pc.local_description or answer
        await self._send({
            "type": MessageType.ANSWER,
            "to": from_id,
            "description": local.to_dict(),
            "session_id": self.session_id,
        })
        self._states[from_id] = PeerState.CONNECTED

    async def _on_answer(self, message: SignalingMessage) -> None:
        data = message.data or {}
        from_id = _peer_id(data.get("from"))
        pc = self._peers.get(from_id) if from_id is not None else None
        if pc is None or not data.get("description"):
            return

        remote = self._remote(SessionDescription.from_dict(data["description"]))
        try:
            await pc.set_remote_description(remote)
        except Exception as e:
            await self._negotiation_failed(from_id, e)
            return
        self._states[from_id] = PeerState.CONNECTED

    async def _on_candidate(self, message: SignalingMessage) -> None:
        data = message.data or {}
        from_id = _peer_id(data.get("from"))
        pc = self._peers.get(from_id) if from_id is not None else None
        if pc is not None and data.get("candidate"):
            await pc.add_ice_candidate(data["candidate"])

    async def _on_peers(self, message: SignalingMessage) -> None:
        self._logger.info("Peers", peers=message.data)
        await self._emit(
            SignalingEventType.PEERS,
            {"peers": message.data, "self_id": self.self_id}
        )

    async def _on_leave(self, message: SignalingMessage) -> None:
        peer_id = _peer_id(message.data)
        self._logger.info("Peer left", peer_id=peer_id)
        if peer_id is None:
            return
        if await self._close_peer(peer_id):
            await self._emit(SignalingEventType.LEAVE, {"id": peer_id})

    async def _on_bye(self, message: SignalingMessage) -> None:
        data = message.data or {}
        to_id = _peer_id(data.get("to"))
        from_id = _peer_id(data.get("from"))
        self._logger.info("Bye", session_id=data.get("session_id"))

        peer_id = to_id if to_id in self._peers else from_id
        if peer_id is not None and await self._close_peer(peer_id):
            await self._emit(
                SignalingEventType.CALL_END,
                {"id": to_id, "session_id": self.session_id}
            )
        self.session_id = SignalingConstants.IDLE_SESSION_ID

    async def _keepalive_loop(self) -> None:
        while True:
            await asyncio.sleep(self._keepalive_interval)
            try:
                await self._send({"type": MessageType.KEEPALIVE, "data": {}})
            except (ConnectionError, websockets.exceptions.ConnectionClosed) as e:
                self._logger.warning("Keepalive failed", error=str(e))
                return
            self._keepalive_count += 1
            self._logger.debug("Sent keepalive", count=self._keepalive_count)

    async def _send(self, message: Dict[str, Any]) -> None:
        if not self._ws:
            raise ConnectionError("Not connected")
        await self._ws.send(encode_message(message))

    async def _emit(
        self,
        event_type: SignalingEventType,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None
    ) -> None:
        await self._event_queue.put(
            SignalingEvent(
                type=event_type,
                data=data or {},
                timestamp=time.time(),
                error=error
            )
        )

    @staticmethod
    def _random_user_id() -> str:
        return "".join(
            str(random.randint(0, 9)) for _ in range(SignalingConstants.USER_ID_DIGITS)
        )
