"""Pairing of voice-server assignments with voice states.

The host platform delivers the two halves of a voice connection as independent
events. Both are cached per guild in a :class:`VoiceRecordTable`; whenever either
half arrives the same pure :func:`resolve_voice_update` decides whether a
connect payload can be built.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from discord_music_link.domain.shared.types import NonEmptyStr


class VoiceUpdate(BaseModel):
    """What a node needs to join the voice transport for one guild."""

    model_config = ConfigDict(frozen=True)

    session_id: NonEmptyStr
    event: dict[str, Any]

    def to_payload(self) -> dict[str, Any]:
        return {"sessionId": self.session_id, "event": dict(self.event)}


def resolve_voice_update(
    server: Mapping[str, Any] | None,
    state: Mapping[str, Any] | None,
    previous: VoiceUpdate | None = None,
) -> VoiceUpdate | None:
    """Merge a cached server record with the best known voice session id.

    The session id comes from the cached voice state when present, otherwise
    from the player's previous voice update (the server record can arrive again
    after the bot already connected once). Returns None while either half is
    missing.
    """
    if server is None:
        return None

    session_id = state.get("session_id") if state else None
    if not session_id and previous is not None:
        session_id = previous.session_id
    if not session_id:
        return None

    return VoiceUpdate(session_id=session_id, event=dict(server))


class VoiceRecordTable:
    """Latest voice-server and voice-state payloads, keyed by guild id."""

    def __init__(self) -> None:
        self.servers: dict[int, dict[str, Any]] = {}
        self.states: dict[int, dict[str, Any]] = {}

    def put_server(self, guild_id: int, data: Mapping[str, Any]) -> None:
        self.servers[guild_id] = dict(data)

    def put_state(self, guild_id: int, data: Mapping[str, Any]) -> None:
        self.states[guild_id] = dict(data)

    def discard(self, guild_id: int) -> None:
        self.servers.pop(guild_id, None)
        self.states.pop(guild_id, None)

    def get(self, guild_id: int) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        return self.servers.get(guild_id), self.states.get(guild_id)
