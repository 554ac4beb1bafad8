"""
Shared Kernel

Cross-cutting exceptions, message templates and constrained types.
"""

from discord_music_link.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    NodeNotConnectedError,
    NoNodesAvailableError,
    TrackLoadError,
    UnknownEventError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "InvalidOperationError",
    "NoNodesAvailableError",
    "NodeNotConnectedError",
    "TrackLoadError",
    "UnknownEventError",
    "ValidationError",
]
