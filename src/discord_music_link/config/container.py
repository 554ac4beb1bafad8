"""Wiring of the Manager from application settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..infrastructure.lavalink.manager import Manager

if TYPE_CHECKING:
    from ..application.interfaces.voice_gateway import VoiceGateway
    from .settings import Settings


def create_manager(settings: Settings, gateway: VoiceGateway) -> Manager:
    """Build a Manager for every node in ``settings.nodes``; nodes connect on ``start``."""
    return Manager(
        gateway,
        settings.nodes,
        shards=settings.link.shards,
        default_search_source=settings.link.default_search_source,
        request_timeout=settings.link.request_timeout,
    )
