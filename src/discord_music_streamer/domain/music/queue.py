"""FIFO holding area for tracks waiting to be played."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from discord_music_streamer.domain.music.entities import Track


class PlaybackQueue:
    """Ordered sequence of pending tracks; insertion order is play order.

    No deduplication and no size bound. Only the owning session mutates it.
    """

    def __init__(self) -> None:
        self._tracks: deque[Track] = deque()

    def __len__(self) -> int:
        return len(self._tracks)

    def __bool__(self) -> bool:
        return bool(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self.peek_all())

    def enqueue(self, track: Track) -> int:
        """Append a track to the tail and return its 1-based position."""
        self._tracks.append(track)
        return len(self._tracks)

    def dequeue_next(self) -> Track | None:
        """Remove and return the head, or None when the queue is empty."""
        if not self._tracks:
            return None
        return self._tracks.popleft()

    def peek_all(self) -> tuple[Track, ...]:
        """Snapshot of the pending tracks in play order."""
        return tuple(self._tracks)

    def clear(self) -> int:
        """Empty the queue and return the count removed."""
        count = len(self._tracks)
        self._tracks.clear()
        return count

    @property
    def total_duration(self) -> int:
        """Sum of the known durations of pending tracks, in seconds."""
        return sum(t.duration_seconds or 0 for t in self._tracks)
