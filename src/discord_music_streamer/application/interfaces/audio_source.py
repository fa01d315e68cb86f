"""Port interface for turning a track URL into a raw audio byte stream."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO

from discord_music_streamer.domain.shared.types import HttpUrlStr


class AudioStream(ABC):
    """An open audio byte stream backed by an external process."""

    @property
    @abstractmethod
    def source_url(self) -> str:
        ...

    @property
    @abstractmethod
    def pipe(self) -> IO[bytes]:
        """Readable binary pipe carrying the encoded audio."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    @abstractmethod
    def close(self) -> None:
        """Terminate the stream early. Safe to call more than once."""
        ...


class AudioSource(ABC):
    """Interface for opening audio streams from source URLs."""

    @abstractmethod
    async def open(self, source_url: HttpUrlStr) -> AudioStream:
        """Open a stream for *source_url*.

        Raises:
            StreamError: the decoder could not be started or produced no bytes.
        """
        ...
