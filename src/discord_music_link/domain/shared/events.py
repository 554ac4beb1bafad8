"""Notification events and the async pub/sub bus that carries them."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from discord_music_link.domain.music.entities import Track
from discord_music_link.domain.shared.messages import LogTemplates
from discord_music_link.domain.shared.types import DiscordSnowflake, NonEmptyStr

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


def utcnow() -> datetime:
    return datetime.now(UTC)


class DomainEvent(BaseModel):
    """Base class for all events."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=utcnow)


# === Node Events ===


class NodeConnected(DomainEvent):
    node: str


class NodeClosed(DomainEvent):
    node: str
    code: int | None = None
    reason: str = ""


class NodeErrored(DomainEvent):
    node: str
    error: str


class NodeReconnecting(DomainEvent):
    node: str


class RawPayloadReceived(DomainEvent):
    """Every decoded node message, routed or not."""

    node: str
    payload: dict[str, Any]


# === Player Events ===


class TrackStarted(DomainEvent):
    guild_id: DiscordSnowflake
    track: Track | None = None


class TrackEnded(DomainEvent):
    guild_id: DiscordSnowflake
    track: Track | None = None
    reason: str = ""


class QueueEnded(DomainEvent):
    guild_id: DiscordSnowflake


class TrackStuck(DomainEvent):
    guild_id: DiscordSnowflake
    track: Track | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class TrackErrored(DomainEvent):
    guild_id: DiscordSnowflake
    track: Track | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class VoiceSocketClosed(DomainEvent):
    guild_id: DiscordSnowflake
    code: int | None = None
    reason: str = ""
    by_remote: bool = False
    payload: dict[str, Any] = Field(default_factory=dict)


# === Event Bus ===


class EventBus:
    """In-memory pub/sub bus for events.

    Handlers are called concurrently. Exceptions in handlers are logged
    but do not prevent other handlers from running. Publishing an event
    nobody subscribed to is a no-op.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed handler to: %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed handler from %s", event_type.__name__)

    def on(self, event_type: type[T]) -> Callable[[EventHandler[T]], EventHandler[T]]:
        """Decorator form of :meth:`subscribe`."""

        def decorator(handler: EventHandler[T]) -> EventHandler[T]:
            self.subscribe(event_type, handler)
            return handler

        return decorator

    def handler_count(self, event_type: type[DomainEvent]) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            return

        logger.debug("Publishing %s to %d handlers", event_type.__name__, len(handlers))

        async def safe_call(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.exception(LogTemplates.EVENT_HANDLER_ERROR, event_type.__name__, e)

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(safe_call(handler))

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")
