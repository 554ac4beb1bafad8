"""Registry of node connections and players, plus the voice rendezvous."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import aiohttp

from discord_music_link.application.interfaces.voice_gateway import (
    VoiceGateway,
    build_voice_state_payload,
)
from discord_music_link.config.settings import NodeSettings
from discord_music_link.domain.music.entities import SearchResponse
from discord_music_link.domain.shared.events import EventBus
from discord_music_link.domain.shared.exceptions import NoNodesAvailableError, ValidationError
from discord_music_link.domain.shared.messages import ErrorMessages, LogTemplates
from discord_music_link.domain.shared.types import validate_discord_snowflake
from discord_music_link.domain.voice.rendezvous import VoiceRecordTable, resolve_voice_update

from .node import NodeConnection
from .player import Player
from .rest import DEFAULT_TIMEOUT, LavalinkRestClient, build_search_identifier

logger = logging.getLogger(__name__)


class Manager:
    """Top-level coordinator.

    Owns every :class:`NodeConnection` (keyed by tag or host) and every
    :class:`Player` (keyed by guild id), and is the single publisher of
    notifications through :attr:`events`.
    """

    def __init__(
        self,
        gateway: VoiceGateway | None,
        nodes: Iterable[NodeSettings | Mapping[str, Any]] = (),
        *,
        shards: int = 1,
        default_search_source: str = "yt",
        player_cls: type[Player] = Player,
        rest: LavalinkRestClient | None = None,
        request_timeout: float = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        if gateway is None:
            raise ValidationError(ErrorMessages.GATEWAY_REQUIRED, field="gateway")

        self.gateway = gateway
        self.shards = shards
        self.default_search_source = default_search_source
        self.player_cls = player_cls
        self.user_id: int | None = None

        self.nodes: dict[str, NodeConnection] = {}
        self.players: dict[int, Player] = {}
        self.voice = VoiceRecordTable()
        self.events = EventBus()
        self.rest = rest or LavalinkRestClient(timeout=request_timeout)

        self._session = session
        self._node_settings = [self._coerce_settings(n) for n in nodes]

    @staticmethod
    def _coerce_settings(settings: NodeSettings | Mapping[str, Any]) -> NodeSettings:
        if isinstance(settings, NodeSettings):
            return settings
        return NodeSettings.model_validate(dict(settings))

    # ── Nodes ───────────────────────────────────────────────────────

    async def create_node(self, settings: NodeSettings | Mapping[str, Any]) -> NodeConnection:
        """Register a node under its tag (or host) and connect it."""
        node = NodeConnection(self, self._coerce_settings(settings), session=self._session)
        self.nodes[node.identifier] = node
        logger.info(LogTemplates.NODE_CREATED, node.identifier, node.host, node.port)

        await node.connect()
        return node

    async def start(self, user_id: int | str) -> None:
        """Record the bot's user id and connect every configured node."""
        self.user_id = validate_discord_snowflake(user_id)
        for settings in self._node_settings:
            await self.create_node(settings)
        logger.info(LogTemplates.MANAGER_STARTED, self.user_id, len(self.nodes))

    async def destroy_node(self, identifier: str) -> bool:
        node = self.nodes.get(identifier)
        if node is None:
            return False
        return await node.destroy()

    @property
    def ideal_nodes(self) -> list[NodeConnection]:
        """Connected nodes, least loaded first.

        Re-sorted on every access (O(n log n)) since stats change continuously;
        ties keep registration order.
        """
        return sorted((n for n in self.nodes.values() if n.connected), key=lambda n: n.load)

    # ── Players ─────────────────────────────────────────────────────

    def get_player(self, guild_id: int | str) -> Player | None:
        return self.players.get(int(guild_id))

    async def join(
        self,
        guild_id: int | str,
        voice_channel_id: int | str,
        text_channel: Any = None,
        *,
        self_mute: bool = False,
        self_deaf: bool = False,
    ) -> Player:
        """Return the guild's player, creating it and joining voice if needed.

        Raises:
            NoNodesAvailableError: If no node is connected.
        """
        guild_id = validate_discord_snowflake(guild_id)
        existing = self.players.get(guild_id)
        if existing is not None:
            logger.debug(LogTemplates.JOIN_EXISTING, guild_id)
            return existing

        voice_channel_id = validate_discord_snowflake(voice_channel_id)
        player = self.spawn_player(
            guild_id,
            voice_channel_id,
            text_channel,
            self_mute=self_mute,
            self_deaf=self_deaf,
        )
        try:
            await self.gateway.send(
                guild_id,
                build_voice_state_payload(
                    guild_id, voice_channel_id, self_mute=self_mute, self_deaf=self_deaf
                ),
            )
        except Exception:
            self.players.pop(guild_id, None)
            player.detach()
            raise
        return player

    def spawn_player(
        self,
        guild_id: int,
        voice_channel_id: int,
        text_channel: Any = None,
        *,
        self_mute: bool = False,
        self_deaf: bool = False,
    ) -> Player:
        nodes = self.ideal_nodes
        if not nodes:
            raise NoNodesAvailableError(ErrorMessages.NO_NODES_CONNECTED)

        player = self.player_cls(
            nodes[0],
            self,
            guild_id,
            voice_channel_id,
            text_channel,
            self_mute=self_mute,
            self_deaf=self_deaf,
        )
        self.players[guild_id] = player
        logger.info(LogTemplates.PLAYER_CREATED, guild_id, nodes[0].identifier)
        return player

    async def leave(self, guild_id: int | str) -> bool:
        """Leave voice and tear the player down. False when there was no player."""
        guild_id = int(guild_id)
        player = self.players.get(guild_id)
        if player is None:
            logger.debug(LogTemplates.LEAVE_NO_PLAYER, guild_id)
            return False

        await self.gateway.send(guild_id, build_voice_state_payload(guild_id, None))
        player.detach()
        await player.send("destroy")
        del self.players[guild_id]

        logger.info(LogTemplates.PLAYER_DESTROYED, guild_id)
        return True

    # ── Voice rendezvous ────────────────────────────────────────────

    async def voice_server_update(self, data: Mapping[str, Any]) -> bool:
        guild_id = int(data["guild_id"])
        logger.debug(LogTemplates.VOICE_SERVER_UPDATE, guild_id, data.get("endpoint"))
        self.voice.put_server(guild_id, data)
        return await self._attempt_connection(guild_id)

    async def voice_state_update(self, data: Mapping[str, Any]) -> bool:
        """Track the bot's own voice state; other users' states are ignored."""
        if self.user_id is None or str(data.get("user_id")) != str(self.user_id):
            return False

        guild_id = int(data["guild_id"])
        logger.debug(LogTemplates.VOICE_STATE_UPDATE, guild_id, data.get("channel_id"))
        if data.get("channel_id"):
            self.voice.put_state(guild_id, data)
            return await self._attempt_connection(guild_id)

        self.voice.discard(guild_id)
        logger.debug(LogTemplates.VOICE_STATE_CLEARED, guild_id)
        return False

    async def packet_update(self, packet: Mapping[str, Any]) -> None:
        """Feed a raw gateway dispatch packet into the rendezvous inputs."""
        event = packet.get("t")
        data = packet.get("d") or {}

        if event == "VOICE_SERVER_UPDATE":
            await self.voice_server_update(data)
        elif event == "VOICE_STATE_UPDATE":
            await self.voice_state_update(data)
        elif event == "GUILD_CREATE":
            states = data.get("voice_states") or []
            if states:
                logger.debug(LogTemplates.GUILD_SNAPSHOT, len(states), data.get("id"))
            for state in states:
                await self.voice_state_update({**state, "guild_id": data["id"]})

    async def _attempt_connection(self, guild_id: int) -> bool:
        server, state = self.voice.get(guild_id)
        player = self.players.get(guild_id)
        if server is None or player is None:
            logger.debug(
                LogTemplates.RENDEZVOUS_INCOMPLETE, guild_id, server is not None, player is not None
            )
            return False

        update = resolve_voice_update(server, state, player.voice_update)
        if update is None:
            logger.debug(LogTemplates.RENDEZVOUS_NO_SESSION, guild_id)
            return False

        await player.connect(update)
        return True

    # ── Tracks ──────────────────────────────────────────────────────

    async def fetch_tracks(self, query: str, source: str | None = None) -> SearchResponse:
        """Search or load tracks on the least loaded node.

        Raises:
            NoNodesAvailableError: If no node is connected.
            TrackLoadError: If the request fails; it is not retried.
        """
        nodes = self.ideal_nodes
        if not nodes:
            raise NoNodesAvailableError(ErrorMessages.NO_NODES_CONNECTED)

        identifier = build_search_identifier(query, source or self.default_search_source)
        return await self.rest.load_tracks(nodes[0], identifier)

    async def close(self) -> None:
        for node in list(self.nodes.values()):
            await node.destroy()
        await self.rest.aclose()
        logger.info(LogTemplates.MANAGER_CLOSED)
