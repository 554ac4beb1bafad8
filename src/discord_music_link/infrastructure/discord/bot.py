"""discord.py client that feeds gateway packets into the Manager."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discord_music_link.domain.shared.messages import LogTemplates

from .gateway import DiscordVoiceGateway

if TYPE_CHECKING:
    from ...config.settings import Settings
    from ..lavalink.manager import Manager

logger = logging.getLogger(__name__)


class LinkBot(commands.Bot):
    def __init__(self, settings: Settings, **kwargs) -> None:
        from ...config.container import create_manager

        intents = discord.Intents.default()
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            enable_debug_events=True,
            **kwargs,
        )

        self.settings = settings
        self.manager: Manager = create_manager(settings, DiscordVoiceGateway(self))

    async def setup_hook(self) -> None:
        # login() has populated self.user by the time setup_hook runs.
        if self.user is not None:
            await self.manager.start(self.user.id)

    async def on_ready(self) -> None:
        if self.user is not None:
            logger.info(LogTemplates.BOT_READY, self.user, self.user.id)

    async def on_socket_raw_receive(self, msg: str) -> None:
        packet = json.loads(msg)
        if packet.get("t") in {"VOICE_SERVER_UPDATE", "VOICE_STATE_UPDATE", "GUILD_CREATE"}:
            await self.manager.packet_update(packet)

    async def close(self) -> None:
        await self.manager.close()
        await super().close()


def create_bot(settings: Settings) -> LinkBot:
    return LinkBot(settings)
