"""In-memory registry of per-guild playback sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord_music_streamer.application.services.session_controller import SessionController
from discord_music_streamer.domain.music.progress import DEFAULT_BAR_WIDTH
from discord_music_streamer.domain.shared.events import EventBus, get_event_bus
from discord_music_streamer.domain.shared.messages import LogTemplates
from discord_music_streamer.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from discord_music_streamer.application.interfaces.audio_source import AudioSource
    from discord_music_streamer.application.interfaces.voice_adapter import VoiceAdapter

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps a guild id to its own SessionController.

    Sessions live only as long as the process; nothing is persisted.
    """

    def __init__(
        self,
        *,
        voice_adapter: VoiceAdapter,
        audio_source: AudioSource,
        event_bus: EventBus | None = None,
        tick_interval: float = 1.0,
        bar_width: int = DEFAULT_BAR_WIDTH,
    ) -> None:
        self._voice_adapter = voice_adapter
        self._audio_source = audio_source
        self._event_bus = event_bus or get_event_bus()
        self._tick_interval = tick_interval
        self._bar_width = bar_width
        self._sessions: dict[DiscordSnowflake, SessionController] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def get(self, guild_id: DiscordSnowflake) -> SessionController | None:
        return self._sessions.get(guild_id)

    def get_or_create(self, guild_id: DiscordSnowflake) -> SessionController:
        session = self._sessions.get(guild_id)
        if session is None or session.closed:
            session = SessionController(
                guild_id,
                voice_adapter=self._voice_adapter,
                audio_source=self._audio_source,
                event_bus=self._event_bus,
                tick_interval=self._tick_interval,
                bar_width=self._bar_width,
            )
            self._sessions[guild_id] = session
            logger.info(LogTemplates.SESSION_CREATED, guild_id)
        return session

    async def remove(self, guild_id: DiscordSnowflake) -> bool:
        """Close and forget the session for *guild_id*. Returns False if there was none."""
        session = self._sessions.pop(guild_id, None)
        if session is None:
            return False
        await session.close()
        logger.info(LogTemplates.SESSION_REMOVED, guild_id)
        return True

    async def close_all(self) -> int:
        """Close every session. Returns how many were closed."""
        guild_ids = list(self._sessions)
        for guild_id in guild_ids:
            await self.remove(guild_id)
        return len(guild_ids)
