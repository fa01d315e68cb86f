"""TrackResolver that routes Spotify links, direct URLs and plain searches."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord_music_streamer.application.interfaces.track_resolver import TrackResolver
from discord_music_streamer.domain.shared.exceptions import ResolutionError
from discord_music_streamer.domain.shared.messages import ErrorMessages
from discord_music_streamer.infrastructure.catalog.spotify_client import is_spotify_url

if TYPE_CHECKING:
    from discord_music_streamer.domain.music.entities import Track
    from discord_music_streamer.infrastructure.audio.ytdlp_resolver import YtDlpResolver
    from discord_music_streamer.infrastructure.catalog.spotify_client import SpotifyCatalogClient

logger = logging.getLogger(__name__)


def is_url(query: str) -> bool:
    return query.startswith(("http://", "https://"))


class CompositeTrackResolver(TrackResolver):
    """Resolves user input to a single playable track.

    - Spotify track link: catalog lookup, then the first YouTube hit for
      ``"{artist} - {title} HQ audio"``
    - any other http(s) URL: direct yt-dlp metadata extraction
    - anything else: treated as a search query, first hit
    """

    def __init__(
        self,
        ytdlp: YtDlpResolver,
        spotify: SpotifyCatalogClient | None = None,
    ) -> None:
        self._ytdlp = ytdlp
        self._spotify = spotify

    async def resolve(self, query: str) -> Track:
        query = query.strip()
        if not query:
            raise ResolutionError(query, ErrorMessages.EMPTY_QUERY)

        if is_url(query) and is_spotify_url(query):
            return await self._resolve_spotify(query)
        if is_url(query):
            return await self._ytdlp.resolve_url(query)
        return await self._ytdlp.search_first(query)

    async def _resolve_spotify(self, url: str) -> Track:
        if self._spotify is None or not self._spotify.configured:
            raise ResolutionError(url, ErrorMessages.SPOTIFY_NOT_CONFIGURED)

        spotify_track = await self._spotify.get_track_by_url(url)
        logger.debug("Searching YouTube for Spotify track %s", spotify_track.id)
        return await self._ytdlp.search_first(spotify_track.search_query)
