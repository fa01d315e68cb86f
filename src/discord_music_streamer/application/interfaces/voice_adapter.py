"""Port interface for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from discord_music_streamer.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from discord_music_streamer.application.interfaces.audio_source import AudioStream

StreamEndCallback = Callable[[Exception | None], None]


class PlayerStatus(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class VoiceConnection(ABC):
    """Handle to a live voice connection in one guild."""

    @property
    @abstractmethod
    def guild_id(self) -> DiscordSnowflake:
        ...

    @property
    @abstractmethod
    def status(self) -> PlayerStatus:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    def play(self, stream: "AudioStream", on_end: StreamEndCallback) -> None:
        """Start sending *stream*; *on_end* is called on the event loop when it finishes.

        Raises:
            StreamError: the stream could not be handed to the voice transport.
        """
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def resume(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the current stream. ``on_end`` still fires for it."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...


class VoiceAdapter(ABC):
    """Interface for joining Discord voice channels."""

    @abstractmethod
    async def connect(
        self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake
    ) -> VoiceConnection:
        """Connect to (or move into) a voice channel.

        Raises:
            VoiceConnectionError: the channel could not be joined.
        """
        ...
