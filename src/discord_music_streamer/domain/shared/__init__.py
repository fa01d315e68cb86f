"""
Shared Domain Kernel

Contains types, events and exceptions shared across the domain.
"""

from discord_music_streamer.domain.shared.exceptions import (
    DomainError,
    ResolutionError,
    StateError,
    StreamError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "ResolutionError",
    "StreamError",
    "VoiceConnectionError",
    "StateError",
]
