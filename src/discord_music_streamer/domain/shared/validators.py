"""Validators for values that arrive as plain ints (settings, env vars)."""

from discord_music_streamer.domain.shared.messages import ErrorMessages

SNOWFLAKE_LIMIT = 2**64


def validate_discord_snowflake(value: int) -> int:
    """Return ``value`` if it can be a guild, channel or user id; raise ValueError otherwise."""
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= SNOWFLAKE_LIMIT:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value
