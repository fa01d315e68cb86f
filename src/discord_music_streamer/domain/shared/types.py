"""Constrained field types shared by tracks, events and settings."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

# Discord ids are unsigned 64-bit snowflakes
DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]

NonNegativeInt = Annotated[int, Field(ge=0)]
PositiveInt = Annotated[int, Field(gt=0)]

NonEmptyStr = Annotated[str, Field(min_length=1)]

# yt-dlp titles can be long; Discord message limits are handled when rendering
TrackTitleStr = Annotated[str, Field(min_length=1, max_length=500)]

# only web pages are handed to yt-dlp, never local paths
HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]

# 24 hours; longer values come from broken metadata
DurationSeconds = Annotated[int, Field(ge=0, le=86_400)]
