"""Keeps one live now-playing message per guild, edited with each progress line."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import discord

from discord_music_streamer.domain.shared.events import (
    EventBus,
    PlaybackProgressed,
    QueueExhausted,
    SessionTerminated,
    TrackFailed,
    TrackStartedPlaying,
)
from discord_music_streamer.domain.shared.messages import DiscordUIMessages, LogTemplates
from discord_music_streamer.utils.reply import clean_title

if TYPE_CHECKING:
    from discord.ext import commands

logger = logging.getLogger(__name__)

TITLE_TRUNCATION = 80


@dataclass
class GuildMessageState:
    channel_id: int
    message: discord.Message | None = None
    pending: str | None = None
    new_message: bool = False
    worker: asyncio.Task[None] | None = None


class NowPlayingPresenter:
    """Renders session events into Discord messages.

    Event handlers never wait on Discord: they record the latest content and a
    per-guild worker sends or edits it. Intermediate progress lines that arrive
    while an edit is in flight are collapsed into the newest one.
    """

    def __init__(self, bot: commands.Bot, event_bus: EventBus) -> None:
        self._bot = bot
        self._event_bus = event_bus
        self._states: dict[int, GuildMessageState] = {}
        self._subscribed = False

    def subscribe(self) -> None:
        if self._subscribed:
            return
        self._event_bus.subscribe(TrackStartedPlaying, self._on_track_started)
        self._event_bus.subscribe(PlaybackProgressed, self._on_progress)
        self._event_bus.subscribe(TrackFailed, self._on_track_failed)
        self._event_bus.subscribe(QueueExhausted, self._on_queue_exhausted)
        self._event_bus.subscribe(SessionTerminated, self._on_session_terminated)
        self._subscribed = True

    def unsubscribe(self) -> None:
        if not self._subscribed:
            return
        self._event_bus.unsubscribe(TrackStartedPlaying, self._on_track_started)
        self._event_bus.unsubscribe(PlaybackProgressed, self._on_progress)
        self._event_bus.unsubscribe(TrackFailed, self._on_track_failed)
        self._event_bus.unsubscribe(QueueExhausted, self._on_queue_exhausted)
        self._event_bus.unsubscribe(SessionTerminated, self._on_session_terminated)
        self._subscribed = False

    def bind(self, guild_id: int, channel_id: int) -> None:
        """Post this guild's messages in *channel_id* from now on."""
        state = self._states.get(guild_id)
        if state is None:
            self._states[guild_id] = GuildMessageState(channel_id=channel_id)
        elif state.channel_id != channel_id:
            state.channel_id = channel_id
            state.message = None
            state.new_message = True

    def get_state(self, guild_id: int) -> GuildMessageState | None:
        return self._states.get(guild_id)

    def reset(self, guild_id: int) -> None:
        state = self._states.pop(guild_id, None)
        if state is not None and state.worker is not None and not state.worker.done():
            state.worker.cancel()

    def clear_all(self) -> None:
        for guild_id in list(self._states):
            self.reset(guild_id)

    async def wait_idle(self, guild_id: int) -> None:
        """Wait until the guild's pending sends and edits are done."""
        state = self._states.get(guild_id)
        if state is not None and state.worker is not None:
            await asyncio.wait({state.worker})

    # ─────────────────────────────────────────────────────────────────
    # Event handlers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _now_playing(title: str, progress: str) -> str:
        return DiscordUIMessages.NOW_PLAYING_PROGRESS.format(
            title=clean_title(title, TITLE_TRUNCATION), progress=progress
        )

    async def _on_track_started(self, event: TrackStartedPlaying) -> None:
        self._submit(
            event.guild_id,
            self._now_playing(event.track_title, event.progress_line),
            new_message=True,
        )

    async def _on_progress(self, event: PlaybackProgressed) -> None:
        self._submit(event.guild_id, self._now_playing(event.track_title, event.progress_line))

    async def _on_track_failed(self, event: TrackFailed) -> None:
        content = DiscordUIMessages.TRACK_FAILED.format(
            title=clean_title(event.track_title, TITLE_TRUNCATION), error=event.error
        )
        self._submit(event.guild_id, content, new_message=True)

    async def _on_queue_exhausted(self, event: QueueExhausted) -> None:
        self._submit(event.guild_id, DiscordUIMessages.QUEUE_FINISHED, new_message=True)

    async def _on_session_terminated(self, event: SessionTerminated) -> None:
        self.reset(event.guild_id)

    # ─────────────────────────────────────────────────────────────────
    # Delivery
    # ─────────────────────────────────────────────────────────────────

    def _submit(self, guild_id: int, content: str, *, new_message: bool = False) -> None:
        state = self._states.get(guild_id)
        if state is None:
            return

        if new_message:
            state.new_message = True
        state.pending = content

        if state.worker is None or state.worker.done():
            state.worker = asyncio.create_task(
                self._drain(guild_id, state), name=f"now-playing-{guild_id}"
            )

    async def _drain(self, guild_id: int, state: GuildMessageState) -> None:
        while state.pending is not None:
            content, state.pending = state.pending, None
            if state.new_message or state.message is None:
                state.new_message = False
                state.message = await self._send(guild_id, state.channel_id, content)
            else:
                await self._edit(guild_id, state, content)

    async def _send(self, guild_id: int, channel_id: int, content: str) -> discord.Message | None:
        channel = self._bot.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            logger.warning(LogTemplates.PRESENTER_SEND_FAILED, guild_id, "channel unavailable")
            return None
        try:
            return await channel.send(content)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.PRESENTER_SEND_FAILED, guild_id, e)
            return None

    async def _edit(self, guild_id: int, state: GuildMessageState, content: str) -> None:
        assert state.message is not None
        try:
            await state.message.edit(content=content)
        except discord.NotFound:
            # deleted by a user; post a fresh one
            state.message = await self._send(guild_id, state.channel_id, content)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.PRESENTER_EDIT_FAILED, guild_id, e)
