"""Port interface for resolving user input to playable tracks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from discord_music_streamer.domain.shared.types import NonEmptyStr

if TYPE_CHECKING:
    from discord_music_streamer.domain.music.entities import Track


class TrackResolver(ABC):
    """Interface for resolving URLs and search queries to tracks."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> "Track":
        """Resolve a URL or search query to a track.

        Raises:
            ResolutionError: nothing playable matched *query*.
        """
        ...
