"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the session registry, adapters and presenter.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.audio_source import AudioSource
    from ..application.interfaces.track_resolver import TrackResolver
    from ..application.interfaces.voice_adapter import VoiceAdapter
    from ..application.services.session_registry import SessionRegistry
    from ..domain.shared.events import EventBus
    from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver
    from ..infrastructure.catalog.spotify_client import SpotifyCatalogClient
    from ..infrastructure.discord.services.now_playing_presenter import NowPlayingPresenter
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    _event_bus: EventBus | None = None

    # Infrastructure adapters
    _audio_source: AudioSource | None = None
    _ytdlp_resolver: YtDlpResolver | None = None
    _spotify_client: SpotifyCatalogClient | None = None
    _track_resolver: TrackResolver | None = None
    _voice_adapter: VoiceAdapter | None = None

    # Application services
    _session_registry: SessionRegistry | None = None

    # Discord presentation
    _now_playing_presenter: NowPlayingPresenter | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import get_event_bus

            self._event_bus = get_event_bus()
        return self._event_bus

    # === Infrastructure Adapters ===

    @property
    def audio_source(self) -> AudioSource:
        """Get the yt-dlp audio stream source."""
        if self._audio_source is None:
            from ..infrastructure.audio.ytdlp_source import YtDlpAudioSource

            self._audio_source = YtDlpAudioSource(self.settings.audio)
        return self._audio_source

    @property
    def ytdlp_resolver(self) -> YtDlpResolver:
        if self._ytdlp_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._ytdlp_resolver = YtDlpResolver(self.settings.audio)
        return self._ytdlp_resolver

    @property
    def spotify_client(self) -> SpotifyCatalogClient | None:
        """Get the Spotify catalog client, or None when no credentials are configured."""
        if self._spotify_client is None and self.settings.spotify.configured:
            from ..infrastructure.catalog.spotify_client import SpotifyCatalogClient

            self._spotify_client = SpotifyCatalogClient(self.settings.spotify)
        return self._spotify_client

    @property
    def track_resolver(self) -> TrackResolver:
        """Get the composite track resolver."""
        if self._track_resolver is None:
            from ..infrastructure.audio.track_resolver import CompositeTrackResolver

            self._track_resolver = CompositeTrackResolver(
                self.ytdlp_resolver, spotify=self.spotify_client
            )
        return self._track_resolver

    @property
    def voice_adapter(self) -> VoiceAdapter:
        """Get the voice adapter."""
        if self._voice_adapter is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

            self._voice_adapter = DiscordVoiceAdapter(self.bot, self.settings.audio)
        return self._voice_adapter

    # === Application Services ===

    @property
    def session_registry(self) -> SessionRegistry:
        """Get the per-guild session registry."""
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(
                voice_adapter=self.voice_adapter,
                audio_source=self.audio_source,
                event_bus=self.event_bus,
                tick_interval=self.settings.playback.tick_interval_seconds,
                bar_width=self.settings.playback.progress_bar_width,
            )
        return self._session_registry

    # === Discord Presentation ===

    @property
    def now_playing_presenter(self) -> NowPlayingPresenter:
        if self._now_playing_presenter is None:
            from ..infrastructure.discord.services.now_playing_presenter import (
                NowPlayingPresenter,
            )

            self._now_playing_presenter = NowPlayingPresenter(self.bot, self.event_bus)
        return self._now_playing_presenter

    # === Lifecycle ===

    def missing_tools(self) -> list[str]:
        """External executables playback needs that are not on PATH."""
        required = (self.settings.audio.ytdlp_binary, "ffmpeg")
        return [tool for tool in required if shutil.which(tool) is None]

    async def initialize(self) -> None:
        for tool in self.missing_tools():
            logger.warning(LogTemplates.TOOL_NOT_FOUND, tool)

    async def shutdown(self) -> None:
        """Close every session and release HTTP clients."""
        if self._session_registry is not None:
            closed = await self._session_registry.close_all()
            logger.debug("Closed %s playback sessions", closed)

        if self._now_playing_presenter is not None:
            self._now_playing_presenter.unsubscribe()
            self._now_playing_presenter.clear_all()

        if self._spotify_client is not None:
            await self._spotify_client.aclose()
            self._spotify_client = None


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
