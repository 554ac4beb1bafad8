# ruff: noqa: N999
"""
Domain Layer

Contains pure playback logic organized by bounded contexts:
- shared/: Exceptions, messages, constrained types and the event bus
- music/: Track, queue, and playback value objects
- voice/: Pairing of voice-server and voice-state records
"""

from discord_music_link.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
