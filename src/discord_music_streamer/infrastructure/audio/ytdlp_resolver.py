"""Track metadata lookup using the yt-dlp library for URLs and searches."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final, cast

from pydantic import BaseModel, ConfigDict, field_validator
from yt_dlp import YoutubeDL
from yt_dlp.utils import YoutubeDLError

from discord_music_streamer.config.settings import AudioSettings
from discord_music_streamer.domain.music.entities import Track
from discord_music_streamer.domain.shared.exceptions import ResolutionError
from discord_music_streamer.domain.shared.messages import ErrorMessages, LogTemplates
from discord_music_streamer.domain.shared.types import NonEmptyStr, NonNegativeInt, PositiveInt

logger = logging.getLogger(__name__)

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
MAX_TITLE_LENGTH: Final[int] = 500
MAX_DURATION_SECONDS: Final[int] = 86_400
LOG_URL_TRUNCATE: Final[int] = 60


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp extraction result.

    Extra fields from yt-dlp are silently ignored. Before-validators coerce
    garbage from external yt-dlp data gracefully.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    webpage_url: NonEmptyStr | None = None
    original_url: NonEmptyStr | None = None
    title: NonEmptyStr = "Unknown Title"
    duration: NonNegativeInt | None = None

    @field_validator("webpage_url", "original_url", mode="before")
    @classmethod
    def _coerce_url(cls, v: Any) -> str | None:
        """Keep only http(s) strings."""
        if not isinstance(v, str) or not v.startswith(("http://", "https://")):
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        """Fall back to default when yt-dlp sends empty or non-string title."""
        if not isinstance(v, str) or not v.strip():
            return "Unknown Title"
        return v.strip()[:MAX_TITLE_LENGTH]

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Coerce to a non-negative int within a day; None for garbage or live streams."""
        if v is None:
            return None
        try:
            val = int(v)
        except (TypeError, ValueError):
            return None
        return val if 0 <= val <= MAX_DURATION_SECONDS else None


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True


def ytdlp_reason(error: YoutubeDLError) -> str:
    """yt-dlp's own message without its ``ERROR:`` prefix."""
    return str(error).removeprefix("ERROR: ").strip() or type(error).__name__


class YtDlpResolver:
    """Reads track metadata (title, duration, page URL) without downloading audio.

    yt-dlp is blocking, so every lookup runs in a worker thread.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._params = YtDlpOpts(format=self._settings.ytdlp_format).model_dump(exclude_none=True)

    @staticmethod
    def _to_track(
        info: YtDlpTrackInfo, fallback_url: str | None = None, search_query: str | None = None
    ) -> Track | None:
        url = info.webpage_url or info.original_url or fallback_url
        if not url:
            return None
        return Track(
            source_url=url,
            title=info.title,
            duration_seconds=info.duration,
            search_query=search_query,
        )

    def _extract(self, target: str) -> dict[str, Any]:
        """Run one extraction for a URL or ``ytsearchN:`` target; ``{}`` if yt-dlp returns nothing."""
        with YoutubeDL(params=cast(Any, self._params)) as ydl:
            data = ydl.extract_info(target, download=False)
        return dict(data) if isinstance(data, dict) else {}

    def _lookup(self, url: str) -> YtDlpTrackInfo | None:
        data = self._extract(url)
        return YtDlpTrackInfo.model_validate(data) if data else None

    def _search(self, query: str, limit: int = 1) -> list[YtDlpTrackInfo]:
        entries = self._extract(f"ytsearch{limit}:{query}").get("entries")
        if not isinstance(entries, list):
            return []
        return [YtDlpTrackInfo.model_validate(dict(entry)) for entry in entries if entry]

    async def resolve_url(self, url: str) -> Track:
        """Read metadata for a direct media URL."""
        try:
            info = await asyncio.to_thread(self._lookup, url)
        except YoutubeDLError as e:
            logger.warning(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url[:LOG_URL_TRUNCATE], e)
            raise ResolutionError(
                url, ErrorMessages.YTDLP_REJECTED.format(url=url, reason=ytdlp_reason(e))
            ) from e

        track = self._to_track(info, fallback_url=url) if info else None
        if track is None:
            raise ResolutionError(url, ErrorMessages.NO_METADATA.format(url=url))
        logger.info(LogTemplates.RESOLVED_TRACK, url, track.title)
        return track

    async def search_first(self, query: str) -> Track:
        """Return the first hit of a single-result YouTube search."""
        try:
            results = await asyncio.to_thread(self._search, query, 1)
        except YoutubeDLError as e:
            logger.warning(LogTemplates.YTDLP_FAILED_SEARCH, query, e)
            raise ResolutionError(
                query, ErrorMessages.SEARCH_FAILED.format(query=query, reason=ytdlp_reason(e))
            ) from e

        track = self._to_track(results[0], search_query=query) if results else None
        if track is None:
            raise ResolutionError(query, ErrorMessages.NO_SEARCH_RESULTS.format(query=query))
        logger.info(LogTemplates.RESOLVED_TRACK, query, track.title)
        return track
