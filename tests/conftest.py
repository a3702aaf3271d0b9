"""Shared test fixtures and configuration."""

import pytest
import pytest_asyncio
from typing import AsyncGenerator

from rtcsig.core.options import SdpOptions
from rtcsig.signaling.client import SignalingClient
from tests.mock_peer import FakePeerFactory, FakeWebSocket
from tests.sdp_samples import AUDIO_ONLY_SDP, BROWSER_SDP


@pytest.fixture
def browser_sdp() -> str:
    """Audio+video SDP as produced by a browser."""
    return BROWSER_SDP


@pytest.fixture
def browser_lines() -> list[str]:
    """browser_sdp split into lines."""
    return BROWSER_SDP.split("\r\n")


@pytest.fixture
def audio_only_sdp() -> str:
    """SDP with a single audio section."""
    return AUDIO_ONLY_SDP


@pytest.fixture
def peer_factory() -> FakePeerFactory:
    """Peer connection factory handing out browser_sdp offers/answers."""
    return FakePeerFactory(offer_sdp=BROWSER_SDP, answer_sdp=AUDIO_ONLY_SDP)


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    """In-memory signaling socket."""
    return FakeWebSocket()


@pytest_asyncio.fixture
async def client(
    peer_factory: FakePeerFactory, fake_ws: FakeWebSocket
) -> AsyncGenerator[SignalingClient, None]:
    """Connected signaling client with default options (Opus stereo on)."""

    async def connector(url: str) -> FakeWebSocket:
        return fake_ws

    client = SignalingClient(
        url="ws://signaling.test/ws",
        name="tester",
        peer_factory=peer_factory,
        options=SdpOptions(opus_stereo="true"),
        connector=connector,
        keepalive_interval=3600.0
    )
    await client.connect()
    yield client
    await client.close()
