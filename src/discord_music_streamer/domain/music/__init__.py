"""
Music Bounded Context

Domain logic for tracks, the pending queue and session state.
"""

from discord_music_streamer.domain.music.entities import Track
from discord_music_streamer.domain.music.progress import format_timestamp, render_progress_line
from discord_music_streamer.domain.music.queue import PlaybackQueue
from discord_music_streamer.domain.music.value_objects import (
    CommandOutcome,
    CommandResult,
    SessionState,
    TrackFinishReason,
)

__all__ = [
    # Entities
    "Track",
    "PlaybackQueue",
    # Value Objects
    "SessionState",
    "CommandOutcome",
    "CommandResult",
    "TrackFinishReason",
    # Progress
    "format_timestamp",
    "render_progress_line",
]
