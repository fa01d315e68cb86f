"""The playable unit handed from the resolver to a session."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from discord_music_streamer.domain.music.progress import format_timestamp
from discord_music_streamer.domain.shared.types import (
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    TrackTitleStr,
)


class Track(BaseModel):
    """A resolved track: the page yt-dlp streams from plus what we show about it."""

    model_config = ConfigDict(frozen=True, strict=True)

    source_url: HttpUrlStr
    title: TrackTitleStr
    duration_seconds: DurationSeconds | None = None
    # query that found this track, when it came from a search or a Spotify link
    search_query: NonEmptyStr | None = None

    @property
    def is_live(self) -> bool:
        """No fixed length: a live stream, or yt-dlp reported none."""
        return not self.duration_seconds

    @property
    def length(self) -> str:
        return format_timestamp(self.duration_seconds)
