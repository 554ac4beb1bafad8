"""discord.py implementation of the VoiceGateway port."""

from __future__ import annotations

import logging
from typing import Any

import discord

from discord_music_link.application.interfaces.voice_gateway import VoiceGateway
from discord_music_link.domain.shared.messages import LogTemplates
from discord_music_link.domain.shared.types import DiscordSnowflake

logger = logging.getLogger(__name__)


class DiscordVoiceGateway(VoiceGateway):
    """Sends voice-state updates on the shard that owns the guild."""

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    def _shard_id(self, guild_id: DiscordSnowflake) -> int:
        shard_count = self._client.shard_count or 1
        return (guild_id >> 22) % shard_count

    async def send(self, guild_id: DiscordSnowflake, payload: dict[str, Any]) -> None:
        data = payload["d"]
        guild = self._client.get_guild(guild_id)
        logger.debug(LogTemplates.GATEWAY_SEND, guild_id, self._shard_id(guild_id))

        if guild is not None:
            channel_id = data.get("channel_id")
            await guild.change_voice_state(
                channel=discord.Object(id=int(channel_id)) if channel_id else None,
                self_mute=data.get("self_mute", False),
                self_deaf=data.get("self_deaf", False),
            )
            return

        # Guild not cached yet (still streaming in); write the raw op directly.
        await self._client.ws.send_as_json(payload)
