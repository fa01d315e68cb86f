"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discord_music_streamer.domain.music.entities import Track


class SessionState(Enum):
    """Lifecycle states of a guild playback session.

    - IDLE: nothing playing (a voice connection may still be held after ``stop``)
    - CONNECTING: joining the voice channel / opening the first stream
    - PLAYING: a stream is being sent to the voice channel
    - PAUSED: the current stream is paused, elapsed time retained
    - TERMINATED: like IDLE, but reached through an explicit ``leave``
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    PLAYING = "playing"
    PAUSED = "paused"
    TERMINATED = "terminated"

    @property
    def is_active(self) -> bool:
        return self in {SessionState.PLAYING, SessionState.PAUSED}


class CommandOutcome(Enum):
    """Outcome of a control command, as reported back to the control surface."""

    NOW_PLAYING = "now_playing"
    QUEUED = "queued"
    PAUSED = "paused"
    ALREADY_PAUSED = "already_paused"
    RESUMED = "resumed"
    NOT_PAUSED = "not_paused"
    STOPPED = "stopped"
    SKIPPED = "skipped"
    QUEUE_EMPTY = "queue_empty"
    ALREADY_SKIPPED = "already_skipped"
    LEFT = "left"
    NOT_CONNECTED = "not_connected"
    NOTHING_PLAYING = "nothing_playing"
    FAILED = "failed"

    @property
    def changed_state(self) -> bool:
        """Whether this outcome corresponds to a real transition."""
        return self in _TRANSITION_OUTCOMES


_TRANSITION_OUTCOMES = frozenset(
    {
        CommandOutcome.NOW_PLAYING,
        CommandOutcome.QUEUED,
        CommandOutcome.PAUSED,
        CommandOutcome.RESUMED,
        CommandOutcome.STOPPED,
        CommandOutcome.SKIPPED,
        CommandOutcome.QUEUE_EMPTY,
        CommandOutcome.LEFT,
    }
)


@dataclass(frozen=True)
class CommandResult:
    """Result of a control command applied by a session."""

    outcome: CommandOutcome
    track: Track | None = None
    message: str | None = None
    position: int | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not CommandOutcome.FAILED


class TrackFinishReason(Enum):
    """Reasons a track can stop being the current track."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    STOPPED = "stopped"
    LEFT = "left"
    ERROR = "error"
