"""Bot subclass: wires the container into discord.py and owns startup and shutdown."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING, Any

import discord
from discord.ext import commands

from discord_music_streamer.domain.shared.exceptions import DomainError
from discord_music_streamer.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS: tuple[str, ...] = ("discord_music_streamer.infrastructure.discord.cogs.playback_cog",)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def describe_command_error(error: BaseException) -> str:
    """User-facing text for an exception raised out of a slash command."""
    original = getattr(error, "original", error)
    detail = original.message if isinstance(original, DomainError) else original
    return DiscordUIMessages.ERROR_OCCURRED.format(error=detail)


class MusicBot(commands.Bot):
    def __init__(self, container: Container, settings: Settings, **kwargs: Any) -> None:
        # slash commands only: no message content or member intents
        intents = discord.Intents.default()
        intents.guilds = True
        intents.voice_states = True

        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=intents,
            help_command=None,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        container.set_bot(self)

    # ─────────────────────────────────────────────────────────────────
    # Startup
    # ─────────────────────────────────────────────────────────────────

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        await self.container.initialize()
        await self._load_cogs()
        self.tree.on_error = self._on_app_command_error

        if self.settings.discord.sync_on_startup:
            await self._sync_commands()

        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def _load_cogs(self) -> None:
        """Load every cog extension; a cog that fails to load aborts startup."""
        for extension in COGS:
            try:
                await self.load_extension(extension)
            except commands.ExtensionError as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, extension, e)
                raise
            logger.info(LogTemplates.BOT_COG_LOADED, extension)

    async def _sync_commands(self) -> int:
        """Sync the command tree to each configured guild and then globally.

        Guild syncs show up immediately, global ones can take up to an hour.
        Failures are logged and skipped. Returns the number of successful syncs.
        """
        targets: list[discord.Object | None] = [
            discord.Object(id=guild_id) for guild_id in self.settings.discord.guild_ids
        ]
        targets.append(None)

        succeeded = 0
        for guild in targets:
            if guild is not None:
                self.tree.copy_global_to(guild=guild)
            try:
                synced = await self.tree.sync(guild=guild)
            except discord.HTTPException as e:
                if guild is None:
                    logger.warning(LogTemplates.BOT_SYNC_GLOBAL_FAILED, e)
                else:
                    logger.warning(LogTemplates.BOT_SYNC_GUILD_FAILED, guild.id, e)
                continue

            succeeded += 1
            if guild is None:
                logger.info(LogTemplates.BOT_SYNCED_GLOBAL, len(synced))
            else:
                logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), guild.id)
        return succeeded

    async def on_ready(self) -> None:
        assert self.user is not None
        logger.info(LogTemplates.BOT_READY, self.user, self.user.id)
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.listening, name="/play")
        )

    # ─────────────────────────────────────────────────────────────────
    # Errors
    # ─────────────────────────────────────────────────────────────────

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: discord.app_commands.AppCommandError
    ) -> None:
        command = getattr(interaction.command, "name", "<unknown>")
        logger.error(LogTemplates.BOT_SLASH_COMMAND_ERROR, command, getattr(error, "original", error))

        content = describe_command_error(error)
        send = (
            interaction.followup.send
            if interaction.response.is_done()
            else interaction.response.send_message
        )
        try:
            await send(content, ephemeral=True)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    # ─────────────────────────────────────────────────────────────────
    # Shutdown
    # ─────────────────────────────────────────────────────────────────

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        try:
            await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)
        else:
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)

        await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    async def close_within(self, timeout: float) -> None:
        """Close the bot, giving up after ``timeout`` seconds."""
        try:
            await asyncio.wait_for(self.close(), timeout=timeout)
        except TimeoutError:
            logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, timeout)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT or SIGTERM, then close sessions before exiting."""

        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()
                for sig in SHUTDOWN_SIGNALS:
                    loop.add_signal_handler(
                        sig, lambda: asyncio.create_task(self.close_within(shutdown_timeout))
                    )
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
