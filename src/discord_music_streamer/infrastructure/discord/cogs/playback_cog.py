"""Slash-command cog for playback: play, queue, pause, resume, stop, skip, leave."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import discord
from discord import app_commands
from discord.ext import commands

from discord_music_streamer.domain.music.progress import format_timestamp
from discord_music_streamer.domain.music.value_objects import CommandOutcome, CommandResult
from discord_music_streamer.domain.shared.exceptions import ResolutionError
from discord_music_streamer.domain.shared.messages import DiscordUIMessages, ErrorMessages
from discord_music_streamer.infrastructure.discord.guards.voice_guards import (
    get_guild_id,
    get_user_voice_channel_id,
    send_ephemeral,
)
from discord_music_streamer.utils.reply import clean_title

if TYPE_CHECKING:
    from ....application.services.session_controller import SessionController
    from ....config.container import Container

logger = logging.getLogger(__name__)

QUEUE_DISPLAY_LIMIT: Final[int] = 10
TITLE_TRUNCATION: Final[int] = 80

# replies for control commands in a guild that has no session yet
NO_SESSION_OUTCOMES: Final[dict[str, CommandOutcome]] = {
    "pause": CommandOutcome.NOTHING_PLAYING,
    "resume": CommandOutcome.NOT_PAUSED,
    "stop": CommandOutcome.NOTHING_PLAYING,
    "skip": CommandOutcome.NOTHING_PLAYING,
    "leave": CommandOutcome.NOT_CONNECTED,
}


def describe_result(result: CommandResult) -> str:
    """User-facing text for a command outcome."""
    title = clean_title(result.track.title, TITLE_TRUNCATION) if result.track else ""

    match result.outcome:
        case CommandOutcome.NOW_PLAYING:
            return DiscordUIMessages.PLAY_NOW_PLAYING.format(title=title)
        case CommandOutcome.QUEUED:
            return DiscordUIMessages.PLAY_ADDED_TO_QUEUE.format(title=title, position=result.position)
        case CommandOutcome.PAUSED:
            return DiscordUIMessages.ACTION_PAUSED
        case CommandOutcome.ALREADY_PAUSED:
            return DiscordUIMessages.STATE_ALREADY_PAUSED
        case CommandOutcome.RESUMED:
            return DiscordUIMessages.ACTION_RESUMED
        case CommandOutcome.NOT_PAUSED:
            return DiscordUIMessages.STATE_NOT_PAUSED
        case CommandOutcome.STOPPED:
            return DiscordUIMessages.ACTION_STOPPED
        case CommandOutcome.SKIPPED:
            return DiscordUIMessages.ACTION_SKIPPED.format(title=title)
        case CommandOutcome.QUEUE_EMPTY:
            return DiscordUIMessages.STATE_QUEUE_EMPTY_STOPPING
        case CommandOutcome.ALREADY_SKIPPED:
            return DiscordUIMessages.STATE_ALREADY_SKIPPED
        case CommandOutcome.LEFT:
            return DiscordUIMessages.ACTION_LEFT
        case CommandOutcome.NOT_CONNECTED:
            return DiscordUIMessages.STATE_NOT_CONNECTED
        case CommandOutcome.NOTHING_PLAYING:
            return DiscordUIMessages.STATE_NOTHING_PLAYING
        case _:
            return DiscordUIMessages.PLAY_FAILED.format(error=result.message or "unknown error")


def describe_queue(session: SessionController | None) -> str:
    current = session.current_track if session else None
    pending = session.queued_tracks if session else ()
    if current is None and not pending:
        return DiscordUIMessages.STATE_QUEUE_EMPTY

    lines = [DiscordUIMessages.QUEUE_HEADER]
    if current is not None:
        lines.append(
            DiscordUIMessages.QUEUE_NOW_PLAYING_LINE.format(
                title=clean_title(current.title, TITLE_TRUNCATION)
            )
        )
    for index, track in enumerate(pending[:QUEUE_DISPLAY_LIMIT], start=1):
        title = clean_title(track.title, TITLE_TRUNCATION)
        if not track.is_live:
            title = f"{title} ({track.length})"
        lines.append(DiscordUIMessages.QUEUE_LINE.format(index=index, title=title))
    if len(pending) > QUEUE_DISPLAY_LIMIT:
        lines.append(DiscordUIMessages.QUEUE_MORE.format(count=len(pending) - QUEUE_DISPLAY_LIMIT))
    if session is not None and session.queued_seconds:
        lines.append(DiscordUIMessages.QUEUE_TOTAL.format(length=format_timestamp(session.queued_seconds)))
    return "\n".join(lines)


class PlaybackCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_load(self) -> None:
        self.container.now_playing_presenter.subscribe()

    async def cog_unload(self) -> None:
        self.container.now_playing_presenter.unsubscribe()
        self.container.now_playing_presenter.clear_all()

    async def _control(self, guild_id: int, command: str) -> CommandResult:
        """Run a control command on the guild's session without creating one."""
        session = self.container.session_registry.get(guild_id)
        if session is None:
            return CommandResult(NO_SESSION_OUTCOMES[command])
        return await getattr(session, command)()

    # ─────────────────────────────────────────────────────────────────
    # Play / Queue
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="play", description="Play a song from a URL or search query.")
    @app_commands.describe(url="YouTube or Spotify link, or a search query")
    async def play(self, interaction: discord.Interaction, url: str) -> None:
        channel_id = await get_user_voice_channel_id(interaction)
        if channel_id is None:
            return
        assert interaction.guild is not None
        guild_id = interaction.guild.id

        await interaction.response.defer()

        try:
            track = await self.container.track_resolver.resolve(url)
        except ResolutionError as e:
            logger.info("Could not resolve %r in guild %s: %s", url, guild_id, e.message)
            await interaction.followup.send(
                DiscordUIMessages.PLAY_FAILED.format(error=e.message), ephemeral=True
            )
            return

        if interaction.channel_id is not None:
            self.container.now_playing_presenter.bind(guild_id, interaction.channel_id)

        result = await self.container.session_registry.get_or_create(guild_id).play(track, channel_id)
        await interaction.followup.send(describe_result(result), ephemeral=not result.ok)

    @app_commands.command(name="queue", description="Show the songs waiting to be played.")
    async def queue(self, interaction: discord.Interaction) -> None:
        guild_id = await get_guild_id(interaction)
        if guild_id is None:
            return

        content = describe_queue(self.container.session_registry.get(guild_id))
        await interaction.response.send_message(content, ephemeral=True)

    # ─────────────────────────────────────────────────────────────────
    # Playback Controls
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="pause", description="Pause the current song.")
    async def pause(self, interaction: discord.Interaction) -> None:
        guild_id = await get_guild_id(interaction)
        if guild_id is None:
            return
        result = await self._control(guild_id, "pause")
        await send_ephemeral(interaction, describe_result(result))

    @app_commands.command(name="resume", description="Resume the paused song.")
    async def resume(self, interaction: discord.Interaction) -> None:
        guild_id = await get_guild_id(interaction)
        if guild_id is None:
            return
        result = await self._control(guild_id, "resume")
        await send_ephemeral(interaction, describe_result(result))

    @app_commands.command(name="stop", description="Stop playback and clear the queue.")
    async def stop(self, interaction: discord.Interaction) -> None:
        guild_id = await get_guild_id(interaction)
        if guild_id is None:
            return
        result = await self._control(guild_id, "stop")
        await send_ephemeral(interaction, describe_result(result))

    @app_commands.command(name="skip", description="Skip to the next song in the queue.")
    async def skip(self, interaction: discord.Interaction) -> None:
        guild_id = await get_guild_id(interaction)
        if guild_id is None:
            return
        result = await self._control(guild_id, "skip")
        await send_ephemeral(interaction, describe_result(result))

    # ─────────────────────────────────────────────────────────────────
    # Leave
    # ─────────────────────────────────────────────────────────────────

    @app_commands.command(name="leave", description="Leave the voice channel and clear the queue.")
    async def leave(self, interaction: discord.Interaction) -> None:
        guild_id = await get_guild_id(interaction)
        if guild_id is None:
            return
        result = await self._control(guild_id, "leave")
        if result.outcome is CommandOutcome.LEFT:
            self.container.now_playing_presenter.reset(guild_id)
        await send_ephemeral(interaction, describe_result(result))

    # ─────────────────────────────────────────────────────────────────
    # Gateway Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is None or after.channel is not None:
            return

        session = self.container.session_registry.get(member.guild.id)
        if session is None or session.closed:
            return
        result = await session.connection_lost()
        if result.outcome is CommandOutcome.LEFT:
            logger.warning("Disconnected from voice in guild %s", member.guild.id)

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info("Left guild: %s (%s)", guild.name, guild.id)
        await self.container.session_registry.remove(guild.id)
        self.container.now_playing_presenter.reset(guild.id)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(PlaybackCog(bot, container))
