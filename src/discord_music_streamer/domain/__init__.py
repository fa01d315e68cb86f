# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, events, messages and exceptions
- music/: Track, queue, session state and progress rendering
"""

from discord_music_streamer.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
