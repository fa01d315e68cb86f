"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for every section
- Loading from environment variables with the ``__`` nested delimiter
- Type coercion from strings
- Range and custom validators (log level, snowflake IDs)
- Settings caching and clearing
"""

import pytest
from pydantic import SecretStr, ValidationError

from discord_music_streamer.config.settings import (
    AudioSettings,
    DiscordSettings,
    PlaybackSettings,
    Settings,
    SpotifySettings,
    clear_settings_cache,
    get_settings,
)

ENV_VARS = (
    "ENVIRONMENT",
    "DEBUG",
    "LOG_LEVEL",
    "DISCORD__TOKEN",
    "DISCORD__GUILD_IDS",
    "SPOTIFY__CLIENT_ID",
    "SPOTIFY__CLIENT_SECRET",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# DiscordSettings Tests
# =============================================================================


class TestDiscordSettings:
    def test_create_with_defaults(self):
        discord = DiscordSettings()

        assert discord.token.get_secret_value() == ""
        assert discord.command_prefix == "!"
        assert discord.guild_ids == ()
        assert discord.sync_on_startup is True

    def test_token_is_secret(self):
        discord = DiscordSettings(token="abc.def.ghi")

        assert isinstance(discord.token, SecretStr)
        assert "abc.def.ghi" not in repr(discord)

    @pytest.mark.parametrize("alias", ["bot_token", "discord_token"])
    def test_token_aliases(self, alias):
        assert DiscordSettings(**{alias: "tok"}).token.get_secret_value() == "tok"

    def test_prefix_maximum_length(self):
        with pytest.raises(ValidationError):
            DiscordSettings(command_prefix="toolong")

    def test_guild_ids_list_becomes_tuple(self):
        assert DiscordSettings(guild_ids=[1, 2]).guild_ids == (1, 2)

    def test_guild_ids_comma_separated(self):
        assert DiscordSettings(guild_ids="111, 222").guild_ids == (111, 222)

    @pytest.mark.parametrize("bad", [0, -5, 2**64])
    def test_invalid_guild_ids(self, bad):
        with pytest.raises(ValidationError):
            DiscordSettings(guild_ids=[bad])

    def test_immutability(self):
        discord = DiscordSettings()

        with pytest.raises(ValidationError):
            discord.command_prefix = "?"


# =============================================================================
# AudioSettings / PlaybackSettings / SpotifySettings Tests
# =============================================================================


class TestAudioSettings:
    def test_create_with_defaults(self):
        audio = AudioSettings()

        assert audio.ytdlp_binary == "yt-dlp"
        assert audio.ytdlp_format == "bestaudio"
        assert audio.ffmpeg_options == "-vn"
        assert audio.default_volume == 0.5

    @pytest.mark.parametrize("volume", [-0.1, 2.1])
    def test_volume_range(self, volume):
        with pytest.raises(ValidationError):
            AudioSettings(default_volume=volume)

    def test_ytdlp_path_alias(self):
        assert AudioSettings(ytdlp_path="/opt/yt-dlp").ytdlp_binary == "/opt/yt-dlp"

    def test_timeouts_must_be_positive(self):
        with pytest.raises(ValidationError):
            AudioSettings(open_timeout_seconds=0)


class TestPlaybackSettings:
    def test_defaults(self):
        playback = PlaybackSettings()

        assert playback.tick_interval_seconds == 1.0
        assert playback.progress_bar_width == 20

    @pytest.mark.parametrize("width", [4, 51])
    def test_bar_width_range(self, width):
        with pytest.raises(ValidationError):
            PlaybackSettings(progress_bar_width=width)


class TestSpotifySettings:
    def test_unconfigured_by_default(self):
        assert SpotifySettings().configured is False

    def test_needs_both_credentials(self):
        assert SpotifySettings(client_id="id").configured is False
        assert SpotifySettings(client_id="id", client_secret="secret").configured is True

    def test_api_endpoints(self):
        spotify = SpotifySettings()

        assert spotify.token_url == "https://accounts.spotify.com/api/token"
        assert spotify.api_base_url == "https://api.spotify.com/v1"


# =============================================================================
# Settings (Main Container) Tests
# =============================================================================


class TestSettings:
    def test_create_with_all_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.discord, DiscordSettings)
        assert isinstance(settings.audio, AudioSettings)
        assert isinstance(settings.playback, PlaybackSettings)
        assert isinstance(settings.spotify, SpotifySettings)

    def test_load_from_environment_variables(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.debug is True
        assert settings.log_level == "WARNING"

    def test_load_nested_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("DISCORD__TOKEN", "secret-token")
        monkeypatch.setenv("DISCORD__GUILD_IDS", "[111, 222]")
        monkeypatch.setenv("AUDIO__DEFAULT_VOLUME", "0.8")
        monkeypatch.setenv("PLAYBACK__TICK_INTERVAL_SECONDS", "0.5")
        monkeypatch.setenv("SPOTIFY__CLIENT_ID", "cid")
        monkeypatch.setenv("SPOTIFY__CLIENT_SECRET", "csecret")

        settings = Settings(_env_file=None)

        assert settings.discord.token.get_secret_value() == "secret-token"
        assert settings.discord.guild_ids == (111, 222)
        assert settings.audio.default_volume == 0.8
        assert settings.playback.tick_interval_seconds == 0.5
        assert settings.spotify.configured

    def test_type_coercion_from_strings(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "1")
        monkeypatch.setenv("DISCORD__SYNC_ON_STARTUP", "no")
        monkeypatch.setenv("PLAYBACK__PROGRESS_BAR_WIDTH", "30")

        settings = Settings(_env_file=None)

        assert settings.debug is True
        assert settings.discord.sync_on_startup is False
        assert settings.playback.progress_bar_width == 30

    def test_environment_validation(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "invalid")

        with pytest.raises(ValidationError, match="Input should be"):
            Settings(_env_file=None)

    def test_log_level_validation_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_log_level_validation_invalid(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")

        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(_env_file=None)

    def test_nested_validation_propagates(self, monkeypatch):
        monkeypatch.setenv("DISCORD__GUILD_IDS", "[0]")

        with pytest.raises(ValidationError, match="must be positive"):
            Settings(_env_file=None)

    def test_guild_ids_comma_separated_env(self, monkeypatch):
        monkeypatch.setenv("DISCORD__GUILD_IDS", "111,222")

        assert Settings(_env_file=None).discord.guild_ids == (111, 222)


# =============================================================================
# Settings Caching Tests
# =============================================================================


class TestSettingsCaching:
    def test_get_settings_returns_cached_instance(self, monkeypatch):
        clear_settings_cache()
        monkeypatch.setenv("ENVIRONMENT", "test")

        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        clear_settings_cache()
        monkeypatch.setenv("ENVIRONMENT", "test")

        settings1 = get_settings()
        clear_settings_cache()
        monkeypatch.setenv("ENVIRONMENT", "production")
        settings2 = get_settings()

        assert settings1 is not settings2
        assert settings1.environment == "test"
        assert settings2.environment == "production"
