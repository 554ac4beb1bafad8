"""Pydantic models for node wire data.

Infrastructure-specific models for parsing the node's periodic statistics
and configuring a single node connection.
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from discord_music_link.domain.shared.types import NonNegativeInt

DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 2333
DEFAULT_PASSWORD: Final[str] = "youshallnotpass"
DEFAULT_RECONNECT_INTERVAL: Final[float] = 5.0
DEFAULT_RESUME_TIMEOUT: Final[int] = 60

DESTROY_CLOSE_CODE: Final[int] = 1000
DESTROY_CLOSE_REASON: Final[str] = "destroy"
"""Close reason marking a deliberate local teardown; the only close that does not reconnect."""


class MemoryStats(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    free: NonNegativeInt = 0
    used: NonNegativeInt = 0
    allocated: NonNegativeInt = 0
    reservable: NonNegativeInt = 0


class CpuStats(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    cores: NonNegativeInt = 0
    # Nodes report -1 when the JVM cannot sample CPU usage.
    system_load: float = Field(default=0.0, alias="systemLoad")
    lavalink_load: float = Field(default=0.0, alias="lavalinkLoad")


class FrameStats(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    sent: int = -1
    nulled: int = -1
    deficit: int = -1


class NodeStats(BaseModel):
    """Snapshot of a node's health, replaced wholesale on every ``stats`` op."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    players: NonNegativeInt = 0
    playing_players: NonNegativeInt = Field(default=0, alias="playingPlayers")
    uptime: NonNegativeInt = 0
    memory: MemoryStats = Field(default_factory=MemoryStats)
    cpu: CpuStats | None = None
    frame_stats: FrameStats | None = Field(default=None, alias="frameStats")

    @property
    def load(self) -> float:
        """System load per core as a percentage; 0 without CPU figures."""
        if self.cpu is None or self.cpu.cores == 0 or self.cpu.system_load < 0:
            return 0.0
        return self.cpu.system_load / self.cpu.cores * 100
