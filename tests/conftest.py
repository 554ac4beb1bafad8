import asyncio
import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import aiohttp
import pytest
import pytest_asyncio

from discord_music_link.application.interfaces.voice_gateway import VoiceGateway

GUILD_ID = 111111111111111111
CHANNEL_ID = 222222222222222222
BOT_USER_ID = 333333333333333333


# ============================================================================
# Transport Fakes
# ============================================================================


class FakeWebSocket:
    """Stands in for ``aiohttp.ClientWebSocketResponse``.

    Frames pushed with :meth:`feed` are returned by :meth:`receive` in order.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.close_calls: list[tuple[int, bytes]] = []
        self.closed = False
        self.close_code: int | None = None
        self.fail_send = False
        self._inbox: asyncio.Queue[SimpleNamespace] = asyncio.Queue()

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(s) for s in self.sent]

    async def send_str(self, data: str) -> None:
        if self.fail_send:
            raise ConnectionResetError("socket gone")
        self.sent.append(data)

    async def receive(self) -> SimpleNamespace:
        return await self._inbox.get()

    def exception(self) -> BaseException | None:
        return None

    async def close(self, *, code: int = 1000, message: bytes = b"") -> bool:
        self.closed = True
        self.close_code = code
        self.close_calls.append((code, message))
        self._inbox.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.CLOSED, data=None, extra=None))
        return True

    def feed(self, payload: dict[str, Any]) -> None:
        self._inbox.put_nowait(
            SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=json.dumps(payload), extra=None)
        )

    def feed_close(self, code: int, reason: str = "") -> None:
        self._inbox.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.CLOSE, data=code, extra=reason))

    def feed_error(self) -> None:
        self._inbox.put_nowait(
            SimpleNamespace(
                type=aiohttp.WSMsgType.ERROR, data=ConnectionResetError("reset"), extra=None
            )
        )


class FakeClientSession:
    """Stands in for ``aiohttp.ClientSession``; hands out one FakeWebSocket per connect."""

    def __init__(self) -> None:
        self.closed = False
        self.fail = False
        self.sockets: list[FakeWebSocket] = []
        self.connect_calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def ws(self) -> FakeWebSocket:
        return self.sockets[-1]

    async def ws_connect(self, url: str, **kwargs: Any) -> FakeWebSocket:
        self.connect_calls.append((url, kwargs))
        if self.fail:
            raise aiohttp.ClientConnectionError("connection refused")
        ws = FakeWebSocket()
        self.sockets.append(ws)
        return ws

    async def close(self) -> None:
        self.closed = True


class FakeGateway(VoiceGateway):
    """Records every voice-state payload instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, dict[str, Any]]] = []

    async def send(self, guild_id: int, payload: dict[str, Any]) -> None:
        self.sent.append((guild_id, payload))


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the loop until ``predicate`` holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


# ============================================================================
# Manager / Node Fixtures
# ============================================================================


@pytest.fixture
def fake_session():
    return FakeClientSession()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest_asyncio.fixture
async def manager(fake_gateway, fake_session):
    """A Manager with no configured nodes; the bot user id is already known."""
    from discord_music_link.infrastructure.lavalink.manager import Manager

    manager = Manager(fake_gateway, session=fake_session)
    manager.user_id = BOT_USER_ID
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def node(manager):
    """A connected node tagged ``main`` with a short reconnect interval."""
    return await manager.create_node({"tag": "main", "reconnect_interval": 0.01})


@pytest_asyncio.fixture
async def player(manager, node):
    return await manager.join(GUILD_ID, CHANNEL_ID)


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


def make_track_payload(identifier: str, title: str | None = None, length: int = 180000) -> dict:
    return {
        "track": f"QAAA{identifier}==",
        "info": {
            "identifier": identifier,
            "title": title or f"Song {identifier}",
            "author": "Test Artist",
            "length": length,
            "isStream": False,
            "isSeekable": True,
            "position": 0,
            "uri": f"https://youtube.com/watch?v={identifier}",
            "sourceName": "youtube",
        },
    }


@pytest.fixture
def track_payload():
    return make_track_payload("dQw4w9WgXcQ", "Never Gonna Give You Up", 213000)


@pytest.fixture
def sample_track(track_payload):
    from discord_music_link.domain.music.entities import Track

    return Track.model_validate(track_payload)


@pytest.fixture
def make_track():
    from discord_music_link.domain.music.entities import Track

    def _make(identifier: str, length: int = 180000):
        return Track.model_validate(make_track_payload(identifier, length=length))

    return _make
