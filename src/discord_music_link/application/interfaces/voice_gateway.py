"""Port interface for the host chat platform's voice-state channel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from discord_music_link.domain.shared.types import DiscordSnowflake

VOICE_STATE_OPCODE = 4


def build_voice_state_payload(
    guild_id: DiscordSnowflake,
    channel_id: DiscordSnowflake | None,
    *,
    self_mute: bool = False,
    self_deaf: bool = False,
) -> dict[str, Any]:
    """Gateway "update voice state" payload; ``channel_id=None`` leaves voice."""
    return {
        "op": VOICE_STATE_OPCODE,
        "d": {
            "guild_id": str(guild_id),
            "channel_id": str(channel_id) if channel_id is not None else None,
            "self_mute": self_mute,
            "self_deaf": self_deaf,
        },
    }


class VoiceGateway(ABC):
    """Interface for sending voice-state updates to the host platform."""

    @abstractmethod
    async def send(self, guild_id: DiscordSnowflake, payload: dict[str, Any]) -> None:
        """Send a raw gateway payload on the shard that owns ``guild_id``."""
        ...
