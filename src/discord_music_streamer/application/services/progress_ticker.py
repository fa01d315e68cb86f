"""Periodic elapsed-time producer for the track that is currently playing."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[["ProgressTicker", int], None]


class ProgressTicker:
    """Counts whole seconds of playback for one track.

    Every ``interval`` the elapsed counter is incremented by one second and
    ``on_tick(ticker, elapsed)`` is called on the event loop. With a known
    duration the ticker stops by itself after reporting ``elapsed == duration``
    and never reports more than that. An unknown duration ticks until cancelled.
    """

    def __init__(
        self,
        *,
        on_tick: TickCallback,
        duration_seconds: int | None,
        start_elapsed: int = 0,
        interval: float = 1.0,
        name: str | None = None,
    ) -> None:
        self._on_tick = on_tick
        self._duration = duration_seconds or None
        self._elapsed = max(0, start_elapsed)
        if self._duration is not None:
            self._elapsed = min(self._elapsed, self._duration)
        self._interval = interval
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def duration(self) -> int | None:
        return self._duration

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        """Whether the ticker reached the track duration on its own."""
        return self._duration is not None and self._elapsed >= self._duration

    def start(self) -> None:
        if self._task is not None or self._cancelled:
            return
        self._task = asyncio.create_task(self._run(), name=self._name)

    def cancel(self) -> None:
        """Stop ticking. Safe to call any number of times, before or after start."""
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the ticker to finish or be cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._cancelled:
                raise

    async def _run(self) -> None:
        while not self._cancelled and not self.finished:
            await asyncio.sleep(self._interval)
            if self._cancelled:
                return
            self._elapsed += 1
            self._on_tick(self, self._elapsed)
        logger.debug("Ticker %s stopped at %ss", self._name, self._elapsed)
