"""Text rendering of playback progress."""

from __future__ import annotations

from typing import Final

DEFAULT_BAR_WIDTH: Final[int] = 20
FILLED_CELL: Final[str] = "#"
EMPTY_CELL: Final[str] = "-"
UNKNOWN_TIMESTAMP: Final[str] = "--:--"


def format_timestamp(seconds: int | None) -> str:
    """Format seconds as M:SS (or H:MM:SS past an hour)."""
    if seconds is None:
        return UNKNOWN_TIMESTAMP

    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def filled_cells(elapsed: int, duration: int | None, width: int = DEFAULT_BAR_WIDTH) -> int:
    """Number of filled cells for ``elapsed`` out of ``duration``, clamped to [0, width].

    An unknown or zero duration renders an empty bar.
    """
    if not duration:
        return 0
    cells = (max(0, elapsed) * width) // duration
    return max(0, min(width, cells))


def render_progress_bar(elapsed: int, duration: int | None, width: int = DEFAULT_BAR_WIDTH) -> str:
    filled = filled_cells(elapsed, duration, width)
    return f"[{FILLED_CELL * filled}{EMPTY_CELL * (width - filled)}]"


def render_progress_line(
    elapsed: int, duration: int | None, width: int = DEFAULT_BAR_WIDTH
) -> str:
    """Render e.g. ``[#####---------------] 0:45 / 3:00``."""
    bar = render_progress_bar(elapsed, duration, width)
    return f"{bar} {format_timestamp(elapsed)} / {format_timestamp(duration or None)}"
