"""Spotify Web API client (client-credentials flow) for track metadata."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Final

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from discord_music_streamer.config.settings import SpotifySettings
from discord_music_streamer.domain.shared.exceptions import ResolutionError
from discord_music_streamer.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

# Refresh the token slightly before Spotify says it expires
TOKEN_EXPIRY_MARGIN: Final[float] = 30.0

SPOTIFY_TRACK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^https?://open\.spotify\.com/(?:intl-[a-z]{2}(?:-[a-z]{2})?/)?track/([A-Za-z0-9]+)"
)


class SpotifyTokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    token_type: str = "Bearer"
    expires_in: int = Field(default=3600, ge=0)


class SpotifyArtist(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class SpotifyTrack(BaseModel):
    """Subset of the ``GET /v1/tracks/{id}`` payload."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = Field(..., min_length=1)
    artists: list[SpotifyArtist] = Field(default_factory=list)
    duration_ms: int | None = None

    @property
    def primary_artist(self) -> str:
        return self.artists[0].name if self.artists else ""

    @property
    def search_query(self) -> str:
        """YouTube search query used to find a playable match."""
        if self.primary_artist:
            return f"{self.primary_artist} - {self.name} HQ audio"
        return f"{self.name} HQ audio"


def is_spotify_url(url: str) -> bool:
    return "open.spotify.com/" in url


def parse_track_id(url: str) -> str | None:
    match = SPOTIFY_TRACK_PATTERN.match(url)
    return match.group(1) if match else None


class SpotifyCatalogClient:
    """Looks up Spotify tracks, caching the access token until it expires."""

    def __init__(
        self, settings: SpotifySettings, *, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self._settings = settings
        self._client = http_client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)
        self._owns_client = http_client is None
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return self._settings.configured

    async def get_access_token(self) -> str:
        async with self._token_lock:
            if self._token is not None and time.monotonic() < self._token_expires_at:
                return self._token

            try:
                response = await self._client.post(
                    self._settings.token_url,
                    data={"grant_type": "client_credentials"},
                    auth=(
                        self._settings.client_id.get_secret_value(),
                        self._settings.client_secret.get_secret_value(),
                    ),
                )
                response.raise_for_status()
                token = SpotifyTokenResponse.model_validate(response.json())
            except (httpx.HTTPError, ValueError, ValidationError) as e:
                raise ResolutionError(
                    self._settings.token_url, ErrorMessages.SPOTIFY_TOKEN_FAILED.format(error=e)
                ) from e

            self._token = token.access_token
            self._token_expires_at = time.monotonic() + max(0.0, token.expires_in - TOKEN_EXPIRY_MARGIN)
            logger.debug(LogTemplates.SPOTIFY_TOKEN_REFRESHED, token.expires_in)
            return self._token

    async def get_track(self, track_id: str) -> SpotifyTrack:
        token = await self.get_access_token()
        url = f"{self._settings.api_base_url}/tracks/{track_id}"

        try:
            response = await self._client.get(url, headers={"Authorization": f"Bearer {token}"})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ResolutionError(url, ErrorMessages.SPOTIFY_TRACK_FAILED.format(error=e)) from e

        try:
            track = SpotifyTrack.model_validate(payload)
        except ValidationError as e:
            raise ResolutionError(
                url, ErrorMessages.SPOTIFY_MALFORMED_RESPONSE.format(track_id=track_id)
            ) from e

        logger.info(LogTemplates.SPOTIFY_TRACK_FETCHED, track_id, track.primary_artist, track.name)
        return track

    async def get_track_by_url(self, url: str) -> SpotifyTrack:
        track_id = parse_track_id(url)
        if track_id is None:
            raise ResolutionError(url, ErrorMessages.SPOTIFY_BAD_TRACK_URL.format(url=url))
        return await self.get_track(track_id)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
