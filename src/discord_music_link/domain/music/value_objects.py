"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import Final

from pydantic import BaseModel, ConfigDict

from discord_music_link.domain.shared.exceptions import ValidationError
from discord_music_link.domain.shared.messages import ErrorMessages
from discord_music_link.domain.shared.types import EqualizerBandIndex, EqualizerGain


class PlaybackState(Enum):
    """Observable playback state of a player.

    - IDLE: nothing loaded on the node (the queue may still hold tracks)
    - PLAYING: a track is loaded and advancing
    - PAUSED: a track is loaded but paused
    """

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"

    @property
    def is_active(self) -> bool:
        return self in {PlaybackState.PLAYING, PlaybackState.PAUSED}


class LoopMode(Enum):
    """Loop mode settings for queue playback."""

    OFF = "off"
    SINGLE = "single"  # Repeat current track
    ALL = "all"  # Cycle the whole queue

    def next_mode(self) -> LoopMode:
        """Cycle to next loop mode."""
        modes = list(LoopMode)
        current_index = modes.index(self)
        next_index = (current_index + 1) % len(modes)
        return modes[next_index]

    @classmethod
    def coerce(cls, value: LoopMode | str | int) -> LoopMode:
        """Accept a LoopMode, its string value, or its 0-based ordinal."""
        if isinstance(value, cls):
            return value
        modes = list(cls)
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(modes):
                return modes[value]
        elif isinstance(value, str):
            for mode in modes:
                if mode.value == value.lower():
                    return mode
        raise ValidationError(
            ErrorMessages.INVALID_LOOP_MODE.format(value=value, valid=[m.value for m in modes]),
            field="loop_mode",
        )


class TrackEndReason(StrEnum):
    """Reasons a node reports for a track ending."""

    FINISHED = "FINISHED"
    LOAD_FAILED = "LOAD_FAILED"
    STOPPED = "STOPPED"
    REPLACED = "REPLACED"
    CLEANUP = "CLEANUP"


QUEUE_END_REASONS: Final[frozenset[str]] = frozenset(
    {TrackEndReason.REPLACED, TrackEndReason.FINISHED, TrackEndReason.STOPPED}
)
"""End reasons that announce a drained queue."""


class LoadType(StrEnum):
    """Result kinds returned by the node's track loader."""

    TRACK_LOADED = "TRACK_LOADED"
    PLAYLIST_LOADED = "PLAYLIST_LOADED"
    SEARCH_RESULT = "SEARCH_RESULT"
    NO_MATCHES = "NO_MATCHES"
    LOAD_FAILED = "LOAD_FAILED"


class NodeOp(StrEnum):
    """Inbound ``op`` values on the node socket."""

    STATS = "stats"
    EVENT = "event"
    PLAYER_UPDATE = "playerUpdate"


class NodeEventType(StrEnum):
    """``type`` values carried by inbound ``event`` payloads."""

    TRACK_START = "TrackStartEvent"
    TRACK_END = "TrackEndEvent"
    TRACK_STUCK = "TrackStuckEvent"
    TRACK_EXCEPTION = "TrackExceptionEvent"
    WEBSOCKET_CLOSED = "WebSocketClosedEvent"


VOICE_SESSION_INVALIDATED_CODES: Final[frozenset[int]] = frozenset({4009, 4015})
"""Discord voice close codes after which the voice session must be re-requested."""


class EqualizerBand(BaseModel):
    """One equalizer band adjustment."""

    model_config = ConfigDict(frozen=True)

    band: EqualizerBandIndex
    gain: EqualizerGain = 0.0
