"""
Voice Bounded Context

Rendezvous of voice-server assignments and voice states.
"""

from discord_music_link.domain.voice.rendezvous import (
    VoiceRecordTable,
    VoiceUpdate,
    resolve_voice_update,
)

__all__ = ["VoiceRecordTable", "VoiceUpdate", "resolve_voice_update"]
