"""Client-side coordination layer for remote audio nodes.

Connects a chat bot to one or more audio nodes over a websocket + REST pair,
balances guild players across them, and runs each guild's playback state
machine.
"""

from discord_music_link.domain.music.entities import SearchResponse, Track
from discord_music_link.domain.music.queue import Queue
from discord_music_link.domain.music.value_objects import LoopMode, PlaybackState
from discord_music_link.domain.shared.events import EventBus
from discord_music_link.infrastructure.lavalink.manager import Manager
from discord_music_link.infrastructure.lavalink.node import NodeConnection
from discord_music_link.infrastructure.lavalink.player import Player

__version__ = "0.1.0"

__all__ = [
    "EventBus",
    "LoopMode",
    "Manager",
    "NodeConnection",
    "PlaybackState",
    "Player",
    "Queue",
    "SearchResponse",
    "Track",
]
