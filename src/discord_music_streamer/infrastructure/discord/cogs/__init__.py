"""Discord cogs - command handlers."""

from discord_music_streamer.infrastructure.discord.cogs.playback_cog import PlaybackCog

__all__ = [
    "PlaybackCog",
]
