"""Per-guild playback state machine bound to a single node."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from discord_music_link.application.interfaces.voice_gateway import build_voice_state_payload
from discord_music_link.domain.music.entities import Track
from discord_music_link.domain.music.queue import Queue
from discord_music_link.domain.music.value_objects import (
    QUEUE_END_REASONS,
    VOICE_SESSION_INVALIDATED_CODES,
    EqualizerBand,
    LoopMode,
    NodeEventType,
    NodeOp,
    PlaybackState,
)
from discord_music_link.domain.shared.events import (
    DomainEvent,
    EventBus,
    QueueEnded,
    TrackEnded,
    TrackErrored,
    TrackStarted,
    TrackStuck,
    VoiceSocketClosed,
)
from discord_music_link.domain.shared.exceptions import (
    InvalidOperationError,
    NodeNotConnectedError,
    UnknownEventError,
    ValidationError,
)
from discord_music_link.domain.shared.messages import ErrorMessages, LogTemplates
from discord_music_link.domain.shared.types import DurationMs, NonNegativeInt

if TYPE_CHECKING:
    from discord_music_link.domain.voice.rendezvous import VoiceUpdate

    from .manager import Manager
    from .node import NodeConnection

logger = logging.getLogger(__name__)


class PlayerState(BaseModel):
    """Locally mirrored node-side state, refreshed by ``playerUpdate``."""

    model_config = ConfigDict(extra="ignore")

    volume: NonNegativeInt = 100
    equalizer: list[EqualizerBand] = Field(default_factory=list)
    position: DurationMs = 0
    time: int | None = None
    connected: bool = False


class Player:
    """One guild's playback session.

    The head of :attr:`queue` is the current track while playing from the
    queue; it is popped when the node reports the track ended. The owning
    node is fixed for the player's lifetime.
    """

    def __init__(
        self,
        node: NodeConnection,
        manager: Manager,
        guild_id: int,
        voice_channel_id: int,
        text_channel: Any = None,
        *,
        self_mute: bool = False,
        self_deaf: bool = False,
    ) -> None:
        self._node = node
        self.manager = manager
        self.guild_id = guild_id
        self.voice_channel_id = voice_channel_id
        self.text_channel = text_channel
        self.self_mute = self_mute
        self.self_deaf = self_deaf

        self.state = PlayerState()
        self.playing = False
        self.paused = False
        self.track: Track | None = None
        self.timestamp: datetime | None = None
        self.voice_update: VoiceUpdate | None = None
        self.loop_mode = LoopMode.OFF
        self.queue = Queue()
        self.events = EventBus()

        self._track_from_queue = False
        self._detached = False

        self._event_handlers: dict[str, Callable[[dict[str, Any]], Awaitable[None]]] = {
            NodeEventType.TRACK_START: self._on_track_start,
            NodeEventType.TRACK_END: self._on_track_end,
            NodeEventType.TRACK_STUCK: self._on_track_stuck,
            NodeEventType.TRACK_EXCEPTION: self._on_track_exception,
            NodeEventType.WEBSOCKET_CLOSED: self._on_websocket_closed,
        }

    def __repr__(self) -> str:
        return (
            f"<Player guild_id={self.guild_id} node={self.node.identifier!r} "
            f"state={self.playback_state.value} queue={len(self.queue)}>"
        )

    @property
    def node(self) -> NodeConnection:
        return self._node

    @property
    def playback_state(self) -> PlaybackState:
        if not self.playing or self.track is None:
            return PlaybackState.IDLE
        return PlaybackState.PAUSED if self.paused else PlaybackState.PLAYING

    @property
    def volume(self) -> int:
        return self.state.volume

    @property
    def position(self) -> int:
        return self.state.position

    @property
    def detached(self) -> bool:
        return self._detached

    # ── Commands ────────────────────────────────────────────────────

    async def play(
        self,
        track: Track | None = None,
        *,
        start_time: DurationMs | None = None,
        end_time: DurationMs | None = None,
        no_replace: bool = False,
    ) -> Track:
        """Play ``track``, or the head of the queue when no track is given.

        Raises:
            NodeNotConnectedError: If the owning node has no open socket.
            InvalidOperationError: If there is no track and the queue is empty.
        """
        self._require_connection("play")
        from_queue = track is None
        if track is None:
            track = self.queue.first()
        if track is None:
            raise InvalidOperationError(
                operation="play",
                current_state=self.playback_state.value,
                message=ErrorMessages.NOTHING_TO_PLAY,
            )

        options: dict[str, Any] = {}
        if start_time is not None:
            options["startTime"] = start_time
        if end_time is not None:
            options["endTime"] = end_time
        if no_replace:
            options["noReplace"] = True

        await self._issue_play(track, from_queue, options)
        return track

    async def _issue_play(
        self, track: Track, from_queue: bool, options: dict[str, Any] | None = None
    ) -> None:
        await self.send("play", {**(options or {}), "track": track.track})

        self.playing = True
        self.track = track
        self._track_from_queue = from_queue
        self.timestamp = datetime.now(UTC)
        logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self.guild_id)

    async def stop(self) -> None:
        self._require_connection("stop")
        await self.send("stop")

        self.playing = False
        self.timestamp = None
        logger.info(LogTemplates.PLAYBACK_STOPPED, self.guild_id)

    async def pause(self, pause: bool = True) -> None:
        self._require_connection("pause")
        await self.send("pause", {"pause": pause})

        self.paused = pause
        logger.info(LogTemplates.PLAYBACK_PAUSED, pause, self.guild_id)

    async def resume(self) -> None:
        await self.pause(False)

    async def set_volume(self, volume: int) -> None:
        if volume < 0:
            raise ValidationError(ErrorMessages.INVALID_VOLUME, field="volume")
        await self.send("volume", {"volume": volume})
        self.state = self.state.model_copy(update={"volume": volume})

    async def seek(self, position: DurationMs) -> None:
        # Local position follows the next playerUpdate.
        await self.send("seek", {"position": position})

    async def set_equalizer(self, bands: Sequence[EqualizerBand | dict[str, Any]]) -> None:
        validated = [EqualizerBand.model_validate(band) for band in bands]
        await self.send("equalizer", {"bands": [band.model_dump() for band in validated]})
        self.state = self.state.model_copy(update={"equalizer": validated})

    def loop(self, mode: LoopMode | str | int) -> LoopMode:
        """Set the loop mode.

        Raises:
            ValidationError: If ``mode`` is not off/single/all.
        """
        self.loop_mode = LoopMode.coerce(mode)
        return self.loop_mode

    def toggle_loop(self) -> LoopMode:
        self.loop_mode = self.loop_mode.next_mode()
        return self.loop_mode

    async def connect(self, voice_update: VoiceUpdate) -> None:
        """Hand the node what it needs to join the voice transport."""
        self.voice_update = voice_update
        logger.debug(LogTemplates.PLAYER_VOICE_UPDATE, self.guild_id, voice_update.session_id)
        await self.send("voiceUpdate", voice_update.to_payload())

    async def destroy(self) -> bool:
        return await self.manager.leave(self.guild_id)

    def detach(self) -> None:
        """Drop all listeners and ignore any message that still arrives."""
        self.events.clear()
        self._detached = True

    async def send(self, op: str, data: dict[str, Any] | None = None) -> None:
        await self.node.send({**(data or {}), "op": op, "guildId": str(self.guild_id)})

    def _require_connection(self, operation: str) -> None:
        if not self.node.connected:
            raise NodeNotConnectedError(self.node.identifier, operation)

    # ── Node messages ───────────────────────────────────────────────

    async def dispatch(self, packet: dict[str, Any]) -> None:
        if self._detached:
            logger.debug(LogTemplates.PLAYER_DETACHED_MESSAGE, packet.get("op"), self.guild_id)
            return

        op = packet.get("op")
        if op == NodeOp.EVENT:
            await self.handle_event(packet)
        elif op == NodeOp.PLAYER_UPDATE:
            self.handle_player_update(packet)
        else:
            logger.debug(LogTemplates.PLAYER_IGNORED_OP, self.guild_id, op)

    def handle_player_update(self, packet: dict[str, Any]) -> None:
        reported = packet.get("state") or {}
        merged = {**self.state.model_dump(), **reported}
        self.state = PlayerState.model_validate(merged)

    async def handle_event(self, packet: dict[str, Any]) -> None:
        """Apply one node event to the state machine.

        Raises:
            UnknownEventError: For an event type outside the wire contract.
        """
        handler = self._event_handlers.get(packet.get("type"))
        if handler is None:
            raise UnknownEventError(packet.get("type"), packet)
        await handler(packet)

    async def _on_track_start(self, packet: dict[str, Any]) -> None:
        await self._publish(TrackStarted(guild_id=self.guild_id, track=self.track))

    async def _on_track_end(self, packet: dict[str, Any]) -> None:
        reason = packet.get("reason", "")
        track = self.track
        logger.debug(
            LogTemplates.TRACK_ENDED,
            track.title if track else None,
            self.guild_id,
            reason,
            self.loop_mode.value,
        )

        if track is not None and self.loop_mode is LoopMode.SINGLE:
            await self._publish(TrackEnded(guild_id=self.guild_id, track=track, reason=reason))
            await self._issue_play(track, self._track_from_queue)
            return

        if track is not None and self.loop_mode is LoopMode.ALL:
            await self._publish(TrackEnded(guild_id=self.guild_id, track=track, reason=reason))
            if self._track_from_queue and not self.queue.empty:
                self.queue.rotate()
            else:
                self.queue.add(track)
            await self._issue_play(self.queue[0], True)
            return

        if self._track_from_queue:
            self.queue.pop_front()

        if self.queue.empty:
            self.playing = False
            self.track = None
            self.timestamp = None
            self._track_from_queue = False
            if reason in QUEUE_END_REASONS:
                logger.info(LogTemplates.QUEUE_ENDED, self.guild_id)
                await self._publish(QueueEnded(guild_id=self.guild_id))
            return

        await self._publish(TrackEnded(guild_id=self.guild_id, track=track, reason=reason))
        await self._issue_play(self.queue[0], True)

    def _discard_failed_head(self) -> None:
        """Drop the queue head if it is the track that just failed."""
        if self._track_from_queue:
            self.queue.pop_front()
            self._track_from_queue = False

    async def _on_track_stuck(self, packet: dict[str, Any]) -> None:
        self._discard_failed_head()
        logger.warning(
            LogTemplates.TRACK_STUCK,
            self.track.title if self.track else None,
            self.guild_id,
            packet.get("thresholdMs"),
        )
        await self._publish(TrackStuck(guild_id=self.guild_id, track=self.track, payload=packet))

    async def _on_track_exception(self, packet: dict[str, Any]) -> None:
        self._discard_failed_head()
        exception = packet.get("exception") or {}
        logger.warning(
            LogTemplates.TRACK_EXCEPTION,
            self.track.title if self.track else None,
            self.guild_id,
            exception.get("message") or packet.get("error"),
        )
        await self._publish(TrackErrored(guild_id=self.guild_id, track=self.track, payload=packet))

    async def _on_websocket_closed(self, packet: dict[str, Any]) -> None:
        code = packet.get("code")
        logger.info(LogTemplates.VOICE_SOCKET_CLOSED, self.guild_id, code, packet.get("reason"))

        if code in VOICE_SESSION_INVALIDATED_CODES:
            logger.info(LogTemplates.VOICE_SOCKET_REJOIN, self.guild_id)
            await self.manager.gateway.send(
                self.guild_id,
                build_voice_state_payload(
                    self.guild_id,
                    self.voice_channel_id,
                    self_mute=self.self_mute,
                    self_deaf=self.self_deaf,
                ),
            )

        await self._publish(
            VoiceSocketClosed(
                guild_id=self.guild_id,
                code=code,
                reason=packet.get("reason") or "",
                by_remote=bool(packet.get("byRemote", False)),
                payload=packet,
            )
        )

    async def _publish(self, event: DomainEvent) -> None:
        await self.events.publish(event)
        await self.manager.events.publish(event)
