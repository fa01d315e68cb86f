"""Per-guild playback session: queue, current track, ticker and voice connection.

All mutations happen on a single dispatcher task that consumes an
``asyncio.Queue`` of commands, stream-end notifications and progress ticks.
Commands are awaitable and resolve to a ``CommandResult``.

Every opened stream is tagged with a generation number. Tearing a stream
down bumps the generation as well, so end notifications from a stream that
was already stopped, skipped or left are dropped instead of advancing twice.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from discord_music_streamer.application.interfaces.voice_adapter import PlayerStatus
from discord_music_streamer.application.services.progress_ticker import ProgressTicker
from discord_music_streamer.domain.music.progress import DEFAULT_BAR_WIDTH, render_progress_line
from discord_music_streamer.domain.music.queue import PlaybackQueue
from discord_music_streamer.domain.music.value_objects import (
    CommandOutcome,
    CommandResult,
    SessionState,
    TrackFinishReason,
)
from discord_music_streamer.domain.shared.events import (
    EventBus,
    PlaybackProgressed,
    QueueExhausted,
    SessionTerminated,
    TrackFailed,
    TrackStartedPlaying,
    get_event_bus,
)
from discord_music_streamer.domain.shared.exceptions import (
    StateError,
    StreamError,
    VoiceConnectionError,
)
from discord_music_streamer.domain.shared.messages import LogTemplates
from discord_music_streamer.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from discord_music_streamer.application.interfaces.audio_source import AudioSource, AudioStream
    from discord_music_streamer.application.interfaces.voice_adapter import (
        VoiceAdapter,
        VoiceConnection,
    )
    from discord_music_streamer.domain.music.entities import Track

logger = logging.getLogger(__name__)


# === Dispatcher events ===


@dataclass
class _Command:
    name: str
    future: asyncio.Future[CommandResult]
    track: Track | None = None
    channel_id: int | None = None
    generation: int | None = None


@dataclass(frozen=True)
class _StreamEnded:
    generation: int
    error: Exception | None = None


@dataclass(frozen=True)
class _Tick:
    ticker: ProgressTicker
    elapsed: int


@dataclass
class _Flush:
    """No-op marker used to wait for every earlier event to be applied."""

    done: asyncio.Future[None] = field(default_factory=lambda: asyncio.get_running_loop().create_future())


_Event = _Command | _StreamEnded | _Tick | _Flush


class SessionController:
    """State machine for one guild's playback session."""

    def __init__(
        self,
        guild_id: DiscordSnowflake,
        *,
        voice_adapter: VoiceAdapter,
        audio_source: AudioSource,
        event_bus: EventBus | None = None,
        tick_interval: float = 1.0,
        bar_width: int = DEFAULT_BAR_WIDTH,
    ) -> None:
        self._guild_id = guild_id
        self._voice_adapter = voice_adapter
        self._audio_source = audio_source
        self._event_bus = event_bus or get_event_bus()
        self._tick_interval = tick_interval
        self._bar_width = bar_width

        self._state = SessionState.IDLE
        self._queue = PlaybackQueue()
        self._current_track: Track | None = None
        self._elapsed = 0
        self._connection: VoiceConnection | None = None
        self._stream: AudioStream | None = None
        self._ticker: ProgressTicker | None = None
        self._generation = 0

        self._events: asyncio.Queue[_Event] = asyncio.Queue()
        self._dispatcher: asyncio.Task[None] | None = None
        self._inflight: _Event | None = None
        self._closed = False

    # ─────────────────────────────────────────────────────────────────
    # Read-only views
    # ─────────────────────────────────────────────────────────────────

    @property
    def guild_id(self) -> DiscordSnowflake:
        return self._guild_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_track(self) -> Track | None:
        return self._current_track

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def connection(self) -> VoiceConnection | None:
        return self._connection

    @property
    def ticker(self) -> ProgressTicker | None:
        return self._ticker

    @property
    def queued_tracks(self) -> tuple[Track, ...]:
        return self._queue.peek_all()

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def queued_seconds(self) -> int:
        return self._queue.total_duration

    @property
    def closed(self) -> bool:
        return self._closed

    def progress_line(self) -> str:
        duration = self._current_track.duration_seconds if self._current_track else None
        return render_progress_line(self._elapsed, duration, self._bar_width)

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    async def play(self, track: Track, channel_id: DiscordSnowflake) -> CommandResult:
        """Queue an already resolved track, starting playback if nothing is playing."""
        return await self._submit("play", track=track, channel_id=channel_id)

    async def pause(self) -> CommandResult:
        return await self._submit("pause")

    async def resume(self) -> CommandResult:
        return await self._submit("resume")

    async def stop(self) -> CommandResult:
        """Stop playback and clear the queue, keeping the voice connection."""
        return await self._submit("stop")

    async def skip(self) -> CommandResult:
        """Skip the track that is playing right now.

        The generation is captured here, so a skip that reaches the dispatcher
        after its track already ended reports ``ALREADY_SKIPPED``.
        """
        return await self._submit("skip", generation=self._generation)

    async def leave(self) -> CommandResult:
        """Stop playback, clear the queue and disconnect from voice."""
        return await self._submit("leave")

    async def connection_lost(self) -> CommandResult:
        """Tear down after the voice connection was closed by someone else.

        Called when Discord reports the bot left its channel (kicked, channel
        deleted). A session that already left on its own reports ``NOT_CONNECTED``.
        """
        return await self._submit("connection_lost")

    async def join(self) -> None:
        """Wait until every event posted so far has been applied."""
        marker = _Flush()
        self._post(marker)
        await marker.done

    async def close(self) -> None:
        """Cancel the ticker and dispatcher, close the stream and disconnect."""
        if self._closed:
            return
        self._closed = True
        self._cancel_ticker()

        if self._dispatcher is not None:
            self._dispatcher.cancel()
            try:
                await self._dispatcher
            except asyncio.CancelledError:
                pass
            self._dispatcher = None

        abandoned = [self._inflight] if self._inflight is not None else []
        self._inflight = None
        while not self._events.empty():
            abandoned.append(self._events.get_nowait())
        for event in abandoned:
            if isinstance(event, _Command) and not event.future.done():
                event.future.cancel()
            elif isinstance(event, _Flush) and not event.done.done():
                event.done.set_result(None)

        self._teardown_stream(TrackFinishReason.LEFT)
        self._queue.clear()
        if self._connection is not None:
            connection, self._connection = self._connection, None
            await connection.disconnect()
        self._current_track = None
        self._elapsed = 0
        self._state = SessionState.TERMINATED
        logger.info(LogTemplates.SESSION_CLOSED, self._guild_id)

    # ─────────────────────────────────────────────────────────────────
    # Dispatcher
    # ─────────────────────────────────────────────────────────────────

    async def _submit(self, name: str, **kwargs: object) -> CommandResult:
        if self._closed:
            raise StateError(name, SessionState.TERMINATED.value, "Session is closed")
        future: asyncio.Future[CommandResult] = asyncio.get_running_loop().create_future()
        self._post(_Command(name, future, **kwargs))  # type: ignore[arg-type]
        return await future

    def _post(self, event: _Event) -> None:
        if self._closed:
            if isinstance(event, _Flush):
                event.done.set_result(None)
            return
        if self._dispatcher is None:
            self._dispatcher = asyncio.create_task(
                self._dispatch_loop(), name=f"session-dispatcher-{self._guild_id}"
            )
        self._events.put_nowait(event)

    async def _dispatch_loop(self) -> None:
        while True:
            event = await self._events.get()
            # left set if this task is cancelled mid-event so close() can release it
            self._inflight = event
            try:
                await self._apply(event)
            except Exception as exc:
                logger.exception(LogTemplates.SESSION_DISPATCH_ERROR, type(event).__name__, self._guild_id)
                self._cancel_ticker()
                if isinstance(event, _Command) and not event.future.done():
                    event.future.set_exception(exc)
            self._inflight = None

    async def _apply(self, event: _Event) -> None:
        if isinstance(event, _Command):
            result = await self._apply_command(event)
            if not event.future.done():
                event.future.set_result(result)
        elif isinstance(event, _StreamEnded):
            await self._on_stream_ended(event)
        elif isinstance(event, _Tick):
            await self._on_tick(event)
        elif not event.done.done():
            event.done.set_result(None)

    async def _apply_command(self, command: _Command) -> CommandResult:
        handlers = {
            "play": self._handle_play,
            "pause": self._handle_pause,
            "resume": self._handle_resume,
            "stop": self._handle_stop,
            "skip": self._handle_skip,
            "leave": self._handle_leave,
            "connection_lost": self._handle_connection_lost,
        }
        try:
            return await handlers[command.name](command)
        except StateError as e:
            logger.debug("Rejected %s in guild %s: %s", command.name, self._guild_id, e.message)
            return CommandResult(CommandOutcome.NOTHING_PLAYING, message=e.message)

    # ─────────────────────────────────────────────────────────────────
    # Command handlers
    # ─────────────────────────────────────────────────────────────────

    async def _handle_play(self, command: _Command) -> CommandResult:
        track = command.track
        assert track is not None

        if self._state.is_active:
            position = self._queue.enqueue(track)
            logger.info(LogTemplates.TRACK_QUEUED, track.title, position, self._guild_id)
            return CommandResult(CommandOutcome.QUEUED, track=track, position=position)

        previous = self._state
        self._transition(SessionState.CONNECTING)
        try:
            await self._ensure_connection(command.channel_id)
        except VoiceConnectionError as e:
            logger.warning("Voice connection failed in guild %s: %s", self._guild_id, e.message)
            self._transition(previous)
            return CommandResult(CommandOutcome.FAILED, track=track, message=e.message)

        self._queue.enqueue(track)
        started, failure = await self._advance(last_track=None)
        if started is None:
            return CommandResult(CommandOutcome.FAILED, track=track, message=failure)
        return CommandResult(CommandOutcome.NOW_PLAYING, track=started)

    async def _handle_pause(self, command: _Command) -> CommandResult:
        if self._state is not SessionState.PLAYING:
            return CommandResult(CommandOutcome.ALREADY_PAUSED, track=self._current_track)

        self._cancel_ticker()
        assert self._connection is not None
        self._connection.pause()
        self._transition(SessionState.PAUSED)
        logger.info(LogTemplates.PLAYBACK_PAUSED, self._guild_id)
        return CommandResult(CommandOutcome.PAUSED, track=self._current_track)

    async def _handle_resume(self, command: _Command) -> CommandResult:
        if self._state is not SessionState.PAUSED:
            return CommandResult(CommandOutcome.NOT_PAUSED, track=self._current_track)

        assert self._connection is not None
        self._connection.resume()
        self._transition(SessionState.PLAYING)
        self._start_ticker(self._elapsed)
        logger.info(LogTemplates.PLAYBACK_RESUMED, self._guild_id)
        return CommandResult(CommandOutcome.RESUMED, track=self._current_track)

    async def _handle_stop(self, command: _Command) -> CommandResult:
        self._require_active("stop")

        stopped = self._current_track
        self._teardown_stream(TrackFinishReason.STOPPED)
        cleared = self._queue.clear()
        self._rest(SessionState.IDLE)
        logger.info(LogTemplates.PLAYBACK_STOPPED, self._guild_id)
        logger.debug(LogTemplates.QUEUE_CLEARED, cleared, self._guild_id)
        return CommandResult(CommandOutcome.STOPPED, track=stopped)

    async def _handle_skip(self, command: _Command) -> CommandResult:
        if command.generation != self._generation:
            logger.info(
                LogTemplates.PLAYBACK_IGNORING_STALE_SKIP,
                self._guild_id,
                command.generation,
                self._generation,
            )
            return CommandResult(CommandOutcome.ALREADY_SKIPPED, track=self._current_track)
        self._require_active("skip")

        skipped = self._current_track
        assert skipped is not None
        logger.info(LogTemplates.TRACK_SKIPPED, skipped.title, self._guild_id)
        self._teardown_stream(TrackFinishReason.SKIPPED)

        started, _ = await self._advance(last_track=skipped)
        if started is None:
            return CommandResult(CommandOutcome.QUEUE_EMPTY, track=skipped)
        return CommandResult(CommandOutcome.SKIPPED, track=started)

    async def _handle_leave(self, command: _Command) -> CommandResult:
        self._cancel_ticker()
        self._teardown_stream(TrackFinishReason.LEFT)
        cleared = self._queue.clear()
        if cleared:
            logger.debug(LogTemplates.QUEUE_CLEARED, cleared, self._guild_id)

        connection, self._connection = self._connection, None
        if connection is None:
            if self._state.is_active:
                self._rest(SessionState.IDLE)
            return CommandResult(CommandOutcome.NOT_CONNECTED)

        await self._terminate(connection, reason="leave")
        return CommandResult(CommandOutcome.LEFT)

    async def _handle_connection_lost(self, command: _Command) -> CommandResult:
        connection, self._connection = self._connection, None
        if connection is None:
            return CommandResult(CommandOutcome.NOT_CONNECTED)

        self._teardown_stream(TrackFinishReason.LEFT)
        self._queue.clear()
        await self._terminate(connection, reason="disconnected")
        return CommandResult(CommandOutcome.LEFT)

    async def _terminate(self, connection: VoiceConnection, *, reason: str) -> None:
        await connection.disconnect()
        self._rest(SessionState.TERMINATED)
        logger.info(LogTemplates.LEFT_VOICE, self._guild_id)
        await self._event_bus.publish(SessionTerminated(guild_id=self._guild_id, reason=reason))

    # ─────────────────────────────────────────────────────────────────
    # Stream and ticker notifications
    # ─────────────────────────────────────────────────────────────────

    def _notify_stream_end(self, generation: int, error: Exception | None) -> None:
        self._post(_StreamEnded(generation, error))

    def _notify_tick(self, ticker: ProgressTicker, elapsed: int) -> None:
        self._post(_Tick(ticker, elapsed))

    async def _on_stream_ended(self, event: _StreamEnded) -> None:
        if event.generation != self._generation or not self._state.is_active:
            logger.debug(
                LogTemplates.PLAYBACK_IGNORING_STALE_END,
                self._guild_id,
                event.generation,
                self._generation,
            )
            return

        logger.debug(LogTemplates.STREAM_ENDED, self._guild_id, event.generation, event.error)
        finished = self._current_track
        assert finished is not None

        if event.error is not None:
            self._teardown_stream(TrackFinishReason.ERROR)
            await self._report_failure(finished, str(event.error))
        else:
            self._teardown_stream(TrackFinishReason.COMPLETED)
            logger.info(LogTemplates.TRACK_FINISHED, finished.title, self._guild_id)

        await self._advance(last_track=finished)

    async def _on_tick(self, event: _Tick) -> None:
        if event.ticker is not self._ticker or self._state is not SessionState.PLAYING:
            return
        track = self._current_track
        assert track is not None

        self._elapsed = event.elapsed
        await self._event_bus.publish(
            PlaybackProgressed(
                guild_id=self._guild_id,
                track_title=track.title,
                elapsed_seconds=self._elapsed,
                duration_seconds=track.duration_seconds,
                generation=self._generation,
                progress_line=self.progress_line(),
            )
        )

    # ─────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────

    def _transition(self, new_state: SessionState) -> None:
        if new_state is not self._state:
            logger.debug(LogTemplates.SESSION_TRANSITION, self._guild_id, self._state.value, new_state.value)
            self._state = new_state

    def _require_active(self, operation: str) -> None:
        if not self._state.is_active:
            raise StateError(operation, self._state.value)

    async def _ensure_connection(self, channel_id: int | None) -> None:
        if self._connection is not None and self._connection.is_connected():
            return
        if channel_id is None:
            raise VoiceConnectionError(self._guild_id, None, "No voice channel to join")
        self._connection = await self._voice_adapter.connect(self._guild_id, channel_id)

    async def _advance(self, *, last_track: Track | None) -> tuple[Track | None, str | None]:
        """Start the next playable track, or come to rest when none is left.

        Returns the started track (or None) and the last failure message.
        """
        failure: str | None = None
        while (track := self._queue.dequeue_next()) is not None:
            try:
                await self._start_stream(track)
            except StreamError as e:
                failure = e.message
                await self._report_failure(track, e.message)
                continue
            return track, None

        self._rest(SessionState.IDLE)
        logger.info(LogTemplates.QUEUE_EMPTY, self._guild_id)
        if last_track is not None:
            await self._event_bus.publish(
                QueueExhausted(guild_id=self._guild_id, last_track_title=last_track.title)
            )
        return None, failure

    async def _start_stream(self, track: Track) -> None:
        connection = self._connection
        if connection is None:
            raise StreamError(track.source_url, "Not connected to voice")

        stream = await self._audio_source.open(track.source_url)
        self._generation += 1
        generation = self._generation
        try:
            connection.play(stream, partial(self._notify_stream_end, generation))
        except StreamError:
            stream.close()
            raise

        self._stream = stream
        self._current_track = track
        self._elapsed = 0
        self._transition(SessionState.PLAYING)
        self._start_ticker(0)
        logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self._guild_id, generation)

        await self._event_bus.publish(
            TrackStartedPlaying(
                guild_id=self._guild_id,
                track_title=track.title,
                track_url=track.source_url,
                duration_seconds=track.duration_seconds,
                generation=generation,
                progress_line=self.progress_line(),
            )
        )

    def _teardown_stream(self, reason: TrackFinishReason) -> None:
        """Cancel the ticker and stop the current stream, invalidating its end event."""
        self._cancel_ticker()
        if self._stream is None and self._current_track is None:
            return

        self._generation += 1
        connection = self._connection
        if connection is not None and connection.status is not PlayerStatus.IDLE:
            connection.stop()

        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
        logger.debug(
            "Tore down stream in guild %s (%s, generation=%s)",
            self._guild_id,
            reason.value,
            self._generation,
        )

    def _rest(self, state: SessionState) -> None:
        self._cancel_ticker()
        self._current_track = None
        self._elapsed = 0
        self._transition(state)

    async def _report_failure(self, track: Track, error: str) -> None:
        logger.warning(LogTemplates.TRACK_FAILED, track.title, self._guild_id, error)
        await self._event_bus.publish(
            TrackFailed(
                guild_id=self._guild_id,
                track_title=track.title,
                track_url=track.source_url,
                error=error,
            )
        )

    def _start_ticker(self, start_elapsed: int) -> None:
        self._cancel_ticker()
        track = self._current_track
        self._ticker = ProgressTicker(
            on_tick=self._notify_tick,
            duration_seconds=track.duration_seconds if track else None,
            start_elapsed=start_elapsed,
            interval=self._tick_interval,
            name=f"progress-ticker-{self._guild_id}",
        )
        self._ticker.start()

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
