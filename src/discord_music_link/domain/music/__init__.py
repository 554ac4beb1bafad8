"""
Music Bounded Context

Track models, the per-guild queue, and playback value objects.
"""

from discord_music_link.domain.music.entities import PlaylistInfo, SearchResponse, Track
from discord_music_link.domain.music.queue import Queue
from discord_music_link.domain.music.value_objects import (
    EqualizerBand,
    LoadType,
    LoopMode,
    PlaybackState,
    TrackEndReason,
)

__all__ = [
    # Entities
    "Track",
    "PlaylistInfo",
    "SearchResponse",
    "Queue",
    # Value Objects
    "EqualizerBand",
    "LoadType",
    "LoopMode",
    "PlaybackState",
    "TrackEndReason",
]
