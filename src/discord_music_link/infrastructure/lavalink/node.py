"""Persistent websocket connection to one remote audio node."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from discord_music_link.domain.music.value_objects import NodeOp
from discord_music_link.domain.shared.events import (
    NodeClosed,
    NodeConnected,
    NodeErrored,
    NodeReconnecting,
    RawPayloadReceived,
)
from discord_music_link.domain.shared.exceptions import UnknownEventError
from discord_music_link.domain.shared.messages import LogTemplates

from .models import DESTROY_CLOSE_CODE, DESTROY_CLOSE_REASON, NodeStats

if TYPE_CHECKING:
    from ...config.settings import NodeSettings
    from .manager import Manager

logger = logging.getLogger(__name__)

WS_HEARTBEAT: float = 60.0

_SEND_ERRORS = (ConnectionError, aiohttp.ClientError)


class NodeConnection:
    """Owns one socket to one node.

    While ``connected`` is False every outbound payload is appended to an
    in-memory buffer; the buffer is flushed in FIFO order on the next open,
    before any new payload goes out. Transport failures schedule a reconnect
    after a fixed ``reconnect_interval`` (no backoff, no attempt cap). Only
    :meth:`destroy` ends the connection for good.
    """

    def __init__(
        self,
        manager: Manager,
        settings: NodeSettings,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.manager = manager
        self.settings = settings
        self.stats: NodeStats | None = None
        self.connected = False

        self._session = session
        self._owns_session = session is None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._listener_task: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._buffer: list[str] = []
        self._destroyed = False

    def __repr__(self) -> str:
        return (
            f"<NodeConnection identifier={self.identifier!r} host={self.host}:{self.port} "
            f"connected={self.connected} pending={self.pending}>"
        )

    # ── Identity ────────────────────────────────────────────────────

    @property
    def identifier(self) -> str:
        return self.settings.identifier

    @property
    def tag(self) -> str | None:
        return self.settings.tag

    @property
    def host(self) -> str:
        return self.settings.host

    @property
    def port(self) -> int:
        return self.settings.port

    @property
    def password(self) -> str:
        return self.settings.password.get_secret_value()

    @property
    def rest_url(self) -> str:
        return self.settings.rest_url

    @property
    def load(self) -> float:
        """Selection weight: system load per core in percent, 0 without stats."""
        return self.stats.load if self.stats is not None else 0.0

    @property
    def pending(self) -> int:
        """Number of payloads waiting for the next open."""
        return len(self._buffer)

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def headers(self, *, show_password: bool = True) -> dict[str, str]:
        headers = {
            "Authorization": self.password if show_password else "*" * len(self.password),
            "Num-Shards": str(self.manager.shards or 1),
            "User-Id": str(self.manager.user_id),
        }
        if self.settings.resume_key:
            headers["Resume-Key"] = self.settings.resume_key
        return headers

    # ── Connection lifecycle ────────────────────────────────────────

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def connect(self) -> bool:
        """Make one connection attempt.

        A failed attempt goes through :meth:`handle_error` (notify, then
        schedule a reconnect) and returns False instead of raising.
        """
        if self._destroyed:
            return False
        await self._drop_socket()

        logger.info(
            LogTemplates.NODE_CONNECTING,
            self.identifier,
            self.settings.ws_url,
            self.headers(show_password=False),
        )
        try:
            ws = await self._get_session().ws_connect(
                self.settings.ws_url, headers=self.headers(), heartbeat=WS_HEARTBEAT
            )
        except (aiohttp.ClientError, OSError, TimeoutError) as e:
            logger.warning(LogTemplates.NODE_CONNECT_FAILED, self.identifier, e)
            await self.handle_error(e)
            return False

        self._ws = ws
        if not await self.handle_open():
            return False
        self._listener_task = asyncio.create_task(
            self._listen(ws), name=f"node-listener-{self.identifier}"
        )
        return True

    async def handle_open(self) -> bool:
        """Flush buffered payloads, configure resuming, then mark the node healthy."""
        self._cancel_reconnect()

        try:
            await self._flush()
            if self.settings.resume_key:
                await self._send_raw(json.dumps(self._resuming_payload()))
                logger.debug(
                    LogTemplates.NODE_RESUMING_CONFIGURED,
                    self.identifier,
                    self.settings.resume_timeout,
                )
        except _SEND_ERRORS as e:
            await self.handle_error(e)
            return False

        self.connected = True
        logger.info(LogTemplates.NODE_CONNECTED, self.identifier)
        await self.manager.events.publish(NodeConnected(node=self.identifier))
        return True

    async def handle_message(self, data: str | bytes) -> None:
        """Decode one frame and route it.

        ``stats`` replaces the stored snapshot. A payload carrying a ``guildId``
        with a registered player is handed to that player. Every decoded payload
        is then published as :class:`RawPayloadReceived`.

        Raises:
            UnknownEventError: If the routed player rejects the event type.
        """
        try:
            packet = json.loads(data)
        except ValueError:
            logger.warning(LogTemplates.NODE_BAD_FRAME, self.identifier, data)
            return
        if not isinstance(packet, dict):
            logger.warning(LogTemplates.NODE_BAD_FRAME, self.identifier, data)
            return

        if packet.get("op") == NodeOp.STATS:
            self.stats = NodeStats.model_validate({k: v for k, v in packet.items() if k != "op"})
            logger.debug(
                LogTemplates.NODE_STATS_UPDATED,
                self.identifier,
                self.stats.players,
                self.stats.playing_players,
                self.stats.load,
            )

        guild_id = packet.get("guildId")
        if guild_id:
            player = self.manager.players.get(int(guild_id))
            if player is not None:
                await player.dispatch(packet)

        await self.manager.events.publish(
            RawPayloadReceived(node=self.identifier, payload=packet)
        )

    async def handle_close(self, code: int | None, reason: str = "") -> None:
        self.connected = False
        logger.info(LogTemplates.NODE_CLOSED, self.identifier, code, reason)
        await self.manager.events.publish(
            NodeClosed(node=self.identifier, code=code, reason=reason)
        )

        if reason == DESTROY_CLOSE_REASON:
            return
        self.schedule_reconnect()

    async def handle_error(self, error: BaseException | None) -> None:
        if error is None:
            return

        self.connected = False
        logger.warning(LogTemplates.NODE_ERROR, self.identifier, error)
        await self.manager.events.publish(NodeErrored(node=self.identifier, error=repr(error)))
        self.schedule_reconnect()

    def schedule_reconnect(self) -> None:
        """Arm the reconnect timer unless one is already pending."""
        if self._destroyed or self._reconnect_handle is not None:
            return

        interval = self.settings.reconnect_interval
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(interval, self._on_reconnect_timer)
        logger.info(LogTemplates.NODE_RECONNECT_SCHEDULED, self.identifier, interval)

    def _on_reconnect_timer(self) -> None:
        self._reconnect_handle = None
        self._reconnect_task = asyncio.get_running_loop().create_task(self.reconnect())

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    async def reconnect(self) -> bool:
        """Discard the old socket and try again."""
        self.connected = False
        await self._drop_socket()

        logger.info(LogTemplates.NODE_RECONNECTING, self.identifier)
        await self.manager.events.publish(NodeReconnecting(node=self.identifier))
        return await self.connect()

    async def destroy(self) -> bool:
        """Close the socket for good and remove this node from the manager."""
        self._destroyed = True
        self._cancel_reconnect()

        ws = self._ws
        await self._drop_socket(code=DESTROY_CLOSE_CODE, message=DESTROY_CLOSE_REASON)
        if self.manager.nodes.get(self.identifier) is self:
            del self.manager.nodes[self.identifier]
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

        logger.info(LogTemplates.NODE_DESTROYED, self.identifier)
        if ws is not None:
            await self.handle_close(DESTROY_CLOSE_CODE, DESTROY_CLOSE_REASON)
        else:
            self.connected = False
        return True

    async def _drop_socket(self, *, code: int = 1000, message: str = "") -> None:
        """Forget the current socket without triggering the close path."""
        task, self._listener_task = self._listener_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        ws, self._ws = self._ws, None
        if ws is not None and not ws.closed:
            await ws.close(code=code, message=message.encode())

    async def _listen(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        code: int | None = None
        reason = ""
        while True:
            msg = await ws.receive()
            if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                try:
                    await self.handle_message(msg.data)
                except UnknownEventError:
                    logger.exception(LogTemplates.NODE_PROTOCOL_FAULT, self.identifier)
                except Exception:
                    logger.exception(LogTemplates.NODE_FRAME_FAILED, self.identifier)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                if self._ws is ws:
                    await self.handle_error(ws.exception() or msg.data)
                return
            else:
                if msg.type == aiohttp.WSMsgType.CLOSE:
                    code, reason = msg.data, msg.extra or ""
                break

        if self._ws is ws:
            await self.handle_close(code if code is not None else ws.close_code, reason)

    # ── Outbound ────────────────────────────────────────────────────

    async def send(self, payload: dict[str, Any]) -> None:
        """Transmit now if connected, else buffer for the next open.

        Never raises on a dead socket: the payload is kept for redelivery.
        """
        data = json.dumps(payload)
        if not self.connected or self._ws is None:
            self._buffer.append(data)
            logger.debug(LogTemplates.NODE_BUFFERED, self.identifier, payload.get("op"), self.pending)
            return

        try:
            await self._send_raw(data)
        except _SEND_ERRORS as e:
            self._buffer.append(data)
            await self.handle_error(e)

    async def configure_resuming(self, key: str | None = None, timeout: int | None = None) -> None:
        await self.send(self._resuming_payload(key, timeout))

    def _resuming_payload(self, key: str | None = None, timeout: int | None = None) -> dict[str, Any]:
        return {
            "op": "configureResuming",
            "key": key or self.settings.resume_key,
            "timeout": self.settings.resume_timeout if timeout is None else timeout,
        }

    async def _flush(self) -> None:
        flushed = 0
        while self._buffer:
            data = self._buffer.pop(0)
            try:
                await self._send_raw(data)
            except _SEND_ERRORS:
                self._buffer.insert(0, data)
                raise
            flushed += 1
        if flushed:
            logger.info(LogTemplates.NODE_FLUSHED, self.identifier, flushed)

    async def _send_raw(self, data: str) -> None:
        if self._ws is None:
            raise ConnectionError(f"Node {self.identifier} has no socket")
        await self._ws.send_str(data)
