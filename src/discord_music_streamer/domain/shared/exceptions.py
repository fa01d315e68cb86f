"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ResolutionError(DomainError):
    """Raised when an input URL or query cannot be turned into a Track."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code="RESOLUTION_ERROR")
        self.query = query


class StreamError(DomainError):
    """Raised when an audio stream cannot be opened or produced no data."""

    def __init__(
        self, source_url: str, message: str | None = None, returncode: int | None = None
    ) -> None:
        msg = message or f"Failed to open audio stream for {source_url}"
        super().__init__(msg, code="STREAM_ERROR")
        self.source_url = source_url
        self.returncode = returncode


class VoiceConnectionError(DomainError):
    """Raised when the bot cannot join or use a voice channel."""

    def __init__(self, guild_id: int, channel_id: int | None = None, message: str | None = None) -> None:
        msg = message or f"Could not connect to voice channel {channel_id} in guild {guild_id}"
        super().__init__(msg, code="VOICE_CONNECTION_ERROR")
        self.guild_id = guild_id
        self.channel_id = channel_id


class StateError(DomainError):
    """Raised when a command is invalid in the current session state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_STATE")
        self.operation = operation
        self.current_state = current_state
