"""Reusable Pydantic Annotated types for domain-wide validation.

Constrained types used across the package are defined here once, so models
can simply annotate their fields::

    from discord_music_link.domain.shared.types import DiscordSnowflake, NonEmptyStr

    class MyModel(BaseModel):
        guild_id: DiscordSnowflake
        name: NonEmptyStr
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BeforeValidator, Field

from discord_music_link.domain.shared.messages import ErrorMessages


def validate_discord_snowflake(value: int | str) -> int:
    """Coerce a snowflake from the gateway (string) or caller (int) form.

    Raises:
        ValueError: If the snowflake is not a positive 64-bit integer.
    """
    value = int(value)
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


# ── Numeric constraints ─────────────────────────────────────────────

DiscordSnowflake = Annotated[int, BeforeValidator(validate_discord_snowflake)]
"""Positive integer that fits a Discord snowflake; accepts the string form."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

PositiveFloat = Annotated[float, Field(gt=0.0)]
"""Float > 0.0."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""


# ── Domain-specific constraints ─────────────────────────────────────

DurationMs = Annotated[int, Field(ge=0)]
"""Track length or position in milliseconds."""

PortInt = Annotated[int, Field(gt=0, lt=65536)]
"""TCP port: 1 … 65 535."""

EqualizerBandIndex = Annotated[int, Field(ge=0, le=14)]
"""Equalizer band: 0 … 14 (15 bands)."""

EqualizerGain = Annotated[float, Field(ge=-0.25, le=1.0)]
"""Equalizer gain multiplier: -0.25 … 1.0."""
