"""Audio infrastructure - yt-dlp stream source and track resolvers."""

from discord_music_streamer.infrastructure.audio.track_resolver import CompositeTrackResolver
from discord_music_streamer.infrastructure.audio.ytdlp_resolver import (
    YtDlpOpts,
    YtDlpResolver,
    YtDlpTrackInfo,
)
from discord_music_streamer.infrastructure.audio.ytdlp_source import (
    YtDlpAudioSource,
    YtDlpAudioStream,
)

__all__ = [
    "CompositeTrackResolver",
    "YtDlpAudioSource",
    "YtDlpAudioStream",
    "YtDlpOpts",
    "YtDlpResolver",
    "YtDlpTrackInfo",
]
