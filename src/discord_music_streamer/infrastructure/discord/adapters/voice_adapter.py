"""Discord voice adapter: joins channels and plays piped yt-dlp audio through FFmpeg."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from discord_music_streamer.application.interfaces.voice_adapter import (
    PlayerStatus,
    StreamEndCallback,
    VoiceAdapter,
    VoiceConnection,
)
from discord_music_streamer.config.settings import AudioSettings
from discord_music_streamer.domain.shared.exceptions import StreamError, VoiceConnectionError
from discord_music_streamer.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord_music_streamer.application.interfaces.audio_source import AudioStream

logger = logging.getLogger(__name__)


class DiscordVoiceConnection(VoiceConnection):
    """Wraps a ``discord.VoiceClient`` for one guild."""

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        loop: asyncio.AbstractEventLoop,
        settings: AudioSettings | None = None,
    ) -> None:
        self._vc = voice_client
        self._loop = loop
        self._settings = settings or AudioSettings()

    @property
    def guild_id(self) -> int:
        return self._vc.guild.id

    @property
    def channel_id(self) -> int | None:
        return self._vc.channel.id if self._vc.channel else None

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._vc

    @property
    def status(self) -> PlayerStatus:
        if self._vc.is_paused():
            return PlayerStatus.PAUSED
        if self._vc.is_playing():
            return PlayerStatus.PLAYING
        return PlayerStatus.IDLE

    def is_connected(self) -> bool:
        return self._vc.is_connected()

    def play(self, stream: AudioStream, on_end: StreamEndCallback) -> None:
        if not self._vc.is_connected():
            raise StreamError(stream.source_url, "Not connected to voice")

        source = discord.FFmpegPCMAudio(
            stream.pipe,
            pipe=True,
            options=self._settings.ffmpeg_options,
        )
        volume_source = discord.PCMVolumeTransformer(source, volume=self._settings.default_volume)

        # Runs on discord.py's audio player thread
        def after_callback(error: Exception | None = None) -> None:
            if error:
                logger.warning(LogTemplates.STREAM_ENDED, self.guild_id, "-", error)
            self._loop.call_soon_threadsafe(on_end, error)

        try:
            self._vc.play(volume_source, after=after_callback)
        except discord.ClientException as e:
            volume_source.cleanup()
            raise StreamError(stream.source_url, str(e)) from e

    def pause(self) -> None:
        if self._vc.is_playing():
            self._vc.pause()

    def resume(self) -> None:
        if self._vc.is_paused():
            self._vc.resume()

    def stop(self) -> None:
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

    async def disconnect(self) -> None:
        guild_id = self.guild_id
        try:
            await self._vc.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        except (discord.DiscordException, OSError):
            logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, guild_id)


class DiscordVoiceAdapter(VoiceAdapter):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()

    def _get_voice_client(self, guild: discord.Guild) -> discord.VoiceClient | None:
        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    def _wrap(self, vc: discord.VoiceClient) -> DiscordVoiceConnection:
        return DiscordVoiceConnection(vc, asyncio.get_running_loop(), self._settings)

    async def connect(self, guild_id: int, channel_id: int) -> DiscordVoiceConnection:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            raise VoiceConnectionError(
                guild_id, channel_id, ErrorMessages.VOICE_GUILD_NOT_FOUND.format(guild_id=guild_id)
            )

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise VoiceConnectionError(
                guild_id,
                channel_id,
                ErrorMessages.VOICE_CHANNEL_NOT_VOICE.format(channel_id=channel_id),
            )

        vc = self._get_voice_client(guild)
        if vc is not None and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await self._wrap(vc).disconnect()
            vc = None

        try:
            async with asyncio.timeout(self._settings.connect_timeout_seconds):
                if vc is not None:
                    if vc.channel is not None and vc.channel.id == channel_id:
                        return self._wrap(vc)
                    await vc.move_to(channel)
                    logger.info(LogTemplates.VOICE_MOVED, channel.name)
                else:
                    vc = await channel.connect(self_deaf=True)
                    logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        except TimeoutError as e:
            raise VoiceConnectionError(
                guild_id,
                channel_id,
                ErrorMessages.VOICE_CONNECT_TIMEOUT.format(channel_id=channel_id),
            ) from e
        except discord.Forbidden as e:
            raise VoiceConnectionError(
                guild_id,
                channel_id,
                ErrorMessages.VOICE_NO_PERMISSION.format(channel_id=channel_id),
            ) from e
        except (discord.ClientException, discord.HTTPException) as e:
            raise VoiceConnectionError(
                guild_id,
                channel_id,
                ErrorMessages.VOICE_CONNECT_FAILED.format(channel_id=channel_id, error=e),
            ) from e

        await self._ensure_self_deaf(guild, channel)
        return self._wrap(vc)

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except (discord.DiscordException, OSError) as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)
