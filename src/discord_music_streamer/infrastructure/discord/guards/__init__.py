"""Guard functions for Discord cogs."""

from discord_music_streamer.infrastructure.discord.guards.voice_guards import (
    get_guild_id,
    get_member,
    get_user_voice_channel_id,
    send_ephemeral,
)

__all__ = [
    "get_guild_id",
    "get_member",
    "get_user_voice_channel_id",
    "send_ephemeral",
]
