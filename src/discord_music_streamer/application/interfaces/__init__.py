"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters.
"""

from discord_music_streamer.application.interfaces.audio_source import AudioSource, AudioStream
from discord_music_streamer.application.interfaces.track_resolver import TrackResolver
from discord_music_streamer.application.interfaces.voice_adapter import (
    PlayerStatus,
    VoiceAdapter,
    VoiceConnection,
)

__all__ = [
    "AudioSource",
    "AudioStream",
    "TrackResolver",
    "VoiceAdapter",
    "VoiceConnection",
    "PlayerStatus",
]
