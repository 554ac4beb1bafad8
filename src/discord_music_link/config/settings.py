"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.types import PortInt, PositiveFloat
from ..infrastructure.lavalink.models import (
    DEFAULT_HOST,
    DEFAULT_PASSWORD,
    DEFAULT_PORT,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_RESUME_TIMEOUT,
)


class NodeSettings(BaseModel):
    """Connection settings for one remote audio node."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tag: str | None = Field(default=None, validation_alias=AliasChoices("tag", "name"))
    host: str = Field(default=DEFAULT_HOST, min_length=1)
    port: PortInt = DEFAULT_PORT
    password: SecretStr = Field(
        default=SecretStr(DEFAULT_PASSWORD),
        validation_alias=AliasChoices("password", "authorization"),
    )
    secure: bool = False
    reconnect_interval: PositiveFloat = Field(
        default=DEFAULT_RECONNECT_INTERVAL,
        validation_alias=AliasChoices("reconnect_interval", "reconnectInterval"),
    )
    resume_key: str | None = Field(
        default=None, validation_alias=AliasChoices("resume_key", "resumeKey")
    )
    resume_timeout: int = Field(
        default=DEFAULT_RESUME_TIMEOUT,
        ge=0,
        validation_alias=AliasChoices("resume_timeout", "resumeTimeout"),
    )

    @property
    def identifier(self) -> str:
        """Registry key: the tag when set, else the host."""
        return self.tag or self.host

    @property
    def ws_url(self) -> str:
        scheme = "wss" if self.secure else "ws"
        return f"{scheme}://{self.host}:{self.port}/"

    @property
    def rest_url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.host}:{self.port}"


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )


class LinkSettings(BaseModel):
    """Manager-wide options."""

    model_config = ConfigDict(frozen=True)

    shards: int = Field(default=1, ge=1)
    default_search_source: str = Field(default="yt", min_length=1)
    request_timeout: float = Field(default=10.0, gt=0.0)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN (nested with delimiter)
    - LINK__SHARDS, LINK__DEFAULT_SEARCH_SOURCE, LINK__REQUEST_TIMEOUT
    - NODES (JSON array of node objects)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    link: LinkSettings = Field(default_factory=LinkSettings)
    nodes: list[NodeSettings] = Field(default_factory=lambda: [NodeSettings()])

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("nodes")
    @classmethod
    def validate_unique_nodes(cls, v: list[NodeSettings]) -> list[NodeSettings]:
        """Node identifiers are registry keys and must not collide."""
        seen: set[str] = set()
        for node in v:
            if node.identifier in seen:
                raise ValueError(f"Duplicate node identifier: {node.identifier}")
            seen.add(node.identifier)
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
