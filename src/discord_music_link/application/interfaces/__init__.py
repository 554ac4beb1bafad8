"""Port interfaces for external collaborators."""

from discord_music_link.application.interfaces.voice_gateway import (
    VoiceGateway,
    build_voice_state_payload,
)

__all__ = ["VoiceGateway", "build_voice_state_payload"]
