"""Runtime configuration read from the environment and ``.env``.

Each concern gets a frozen sub-model, filled from ``SECTION__FIELD``
variables (``DISCORD__TOKEN``, ``PLAYBACK__TICK_INTERVAL_SECONDS``, ...).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.validators import validate_discord_snowflake

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _split_ids(raw: str) -> tuple[int, ...]:
    """Parse ``"1,2"`` or ``"[1, 2]"`` into snowflake ints."""
    return tuple(int(part) for part in raw.strip("[] ").split(",") if part.strip())


class DiscordSettings(BaseModel):
    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    # guilds that get slash commands immediately instead of after global propagation
    guild_ids: Annotated[tuple[int, ...], NoDecode] = Field(
        default_factory=tuple, validation_alias=AliasChoices("guild_ids", "guilds")
    )
    sync_on_startup: bool = True

    @field_validator("guild_ids", mode="before")
    @classmethod
    def coerce_guild_ids(cls, v: object) -> tuple[int, ...]:
        ids = _split_ids(v) if isinstance(v, str) else tuple(v)  # type: ignore[arg-type]
        return tuple(validate_discord_snowflake(guild_id) for guild_id in ids)


class AudioSettings(BaseModel):
    """How tracks are extracted with yt-dlp and handed to FFmpeg."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ytdlp_binary: str = Field(
        default="yt-dlp", min_length=1, validation_alias=AliasChoices("ytdlp_binary", "ytdlp_path")
    )
    ytdlp_format: str = Field(default="bestaudio", min_length=1)
    ffmpeg_options: str = "-vn"
    default_volume: float = Field(default=0.5, ge=0.0, le=2.0)
    open_timeout_seconds: float = Field(default=30.0, gt=0.0, le=300.0)
    connect_timeout_seconds: float = Field(default=15.0, gt=0.0, le=120.0)


class PlaybackSettings(BaseModel):
    model_config = SettingsConfigDict(frozen=True)

    tick_interval_seconds: float = Field(default=1.0, gt=0.0, le=60.0)
    progress_bar_width: int = Field(default=20, ge=5, le=50)


class SpotifySettings(BaseModel):
    """Client-credentials app used to turn Spotify track links into search terms."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    client_id: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("client_id", "spotify_client_id")
    )
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_secret", "spotify_client_secret"),
    )
    token_url: str = "https://accounts.spotify.com/api/token"
    api_base_url: str = "https://api.spotify.com/v1"
    request_timeout_seconds: float = Field(default=10.0, gt=0.0, le=60.0)

    @property
    def configured(self) -> bool:
        return all(secret.get_secret_value() for secret in (self.client_id, self.client_secret))


class Settings(BaseSettings):
    """Top-level settings.

    ``ENVIRONMENT``, ``DEBUG`` and ``LOG_LEVEL`` sit at the top; everything
    else lives in a section (``DISCORD__``, ``AUDIO__``, ``PLAYBACK__``,
    ``SPOTIFY__``). ``DISCORD__GUILD_IDS`` takes a JSON array or a
    comma-separated list.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVEL_NAMES:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=LOG_LEVEL_NAMES))
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process: environment, then ``.env``, then defaults. Cached."""
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
