"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (bot, cogs, voice adapter, now-playing presenter)
- Audio (yt-dlp streaming and metadata lookup)
- Catalog (Spotify Web API)
"""

from discord_music_streamer.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter
from discord_music_streamer.infrastructure.discord.bot import create_bot

__all__ = [
    "create_bot",
    "DiscordVoiceAdapter",
]
