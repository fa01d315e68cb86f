"""Playback events and the in-process bus that carries them to presenters."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from discord_music_streamer.domain.shared.types import (
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeInt,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="DomainEvent")
EventHandler = Callable[[E], Awaitable[None]]


class DomainEvent(BaseModel):
    """Immutable record of something that happened; stamped with an id and UTC time."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: uuid4().hex)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GuildEvent(DomainEvent):
    guild_id: DiscordSnowflake


# === Playback Events ===


class TrackStartedPlaying(GuildEvent):
    track_title: str = ""
    track_url: str = ""
    duration_seconds: NonNegativeInt | None = None
    generation: NonNegativeInt = 0
    progress_line: str = ""


class PlaybackProgressed(GuildEvent):
    """One ticker beat for the stream identified by ``generation``."""

    track_title: str = ""
    elapsed_seconds: NonNegativeInt = 0
    duration_seconds: NonNegativeInt | None = None
    generation: NonNegativeInt = 0
    progress_line: str = ""


class TrackFailed(GuildEvent):
    track_title: str = ""
    track_url: str = ""
    error: str = ""


class QueueExhausted(GuildEvent):
    last_track_title: str = ""


class SessionTerminated(GuildEvent):
    """The session left voice; ``reason`` is ``"leave"`` or ``"disconnected"``."""

    reason: str = ""


# === Event Bus ===


class EventBus:
    """Fan events out to async handlers registered per event class.

    A handler subscribed to a base class (``GuildEvent``, ``DomainEvent``)
    also receives every subclass. All handlers for one event run
    concurrently and a failing handler is logged without affecting the rest.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = {}

    def subscribe(self, event_type: type[E], handler: EventHandler[E]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("%s subscribed to %s", getattr(handler, "__qualname__", handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: EventHandler[E]) -> None:
        registered = self._handlers.get(event_type, [])
        if handler in registered:
            registered.remove(handler)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[EventHandler[Any]]:
        """Handlers that will receive an event of ``event_type``, most specific first."""
        return [
            handler
            for cls in event_type.__mro__
            for handler in self._handlers.get(cls, ())
        ]

    async def publish(self, event: DomainEvent) -> None:
        handlers = self.handlers_for(type(event))
        if not handlers:
            return

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(self._deliver(handler, event))

    @staticmethod
    async def _deliver(handler: EventHandler[Any], event: DomainEvent) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception(
                "%s failed while handling %s",
                getattr(handler, "__qualname__", handler),
                type(event).__name__,
            )

    def clear(self) -> None:
        self._handlers.clear()


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Process-wide bus shared by the container and tests."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Drop the shared bus and its subscriptions; the next call builds a fresh one."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
