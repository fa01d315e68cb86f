"""
Tests for main.py - Main Entry Point

Tests for the main entry point including:
- Logging configuration
- Token validation
- Container and bot creation
- Error handling
- Command-line flags (--env-file, --log-level, --no-sync, --check)
"""

import json
import logging
from contextlib import contextmanager
from unittest.mock import MagicMock, mock_open, patch

import pytest
from pydantic import SecretStr

from discord_music_streamer.main import build_parser, cli, load_logging_config, main, setup_logging


class TestLoggingSetup:
    """Tests for logging configuration."""

    def _make_valid_config(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {},
            "loggers": {
                "discord": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
            "root": {"level": "INFO", "handlers": []},
        }

    def test_dictconfig_called_when_json_exists(self):
        config = self._make_valid_config()
        m = mock_open(read_data=json.dumps(config))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig") as mock_dc,
        ):
            setup_logging()

            mock_dc.assert_called_once_with(config)

    def test_fallback_to_basicconfig_when_json_missing(self):
        with (
            patch("builtins.open", side_effect=FileNotFoundError),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging()

            mock_bc.assert_called_once()
            assert mock_bc.call_args[1]["level"] == logging.INFO

    def test_fallback_to_basicconfig_when_json_malformed(self):
        m = mock_open(read_data="{invalid json")
        with (
            patch("builtins.open", m),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging()

            mock_bc.assert_called_once()

    def test_fallback_when_dictconfig_rejects_config(self):
        m = mock_open(read_data=json.dumps({"version": 1}))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig", side_effect=ValueError("bad formatter")),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging("WARNING")

            assert mock_bc.call_args[1]["level"] == logging.WARNING

    def test_root_logger_level_overridden_by_settings(self):
        config = self._make_valid_config()
        m = mock_open(read_data=json.dumps(config))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig"),
            patch("logging.getLogger") as mock_get_logger,
        ):
            mock_root = MagicMock()
            mock_get_logger.return_value = mock_root

            setup_logging("DEBUG")

            mock_root.setLevel.assert_called_once_with(logging.DEBUG)

    def test_shipped_config_uses_colored_formatter(self):
        from discord_music_streamer import main as main_module

        with open(main_module.LOGGING_CONFIG_PATH) as f:
            config = json.load(f)

        formatter = config["formatters"]["console"]["()"]
        assert formatter == "discord_music_streamer.utils.logging.ColoredFormatter"
        assert config["loggers"]["discord"]["level"] == "WARNING"

    def test_load_logging_config_rejects_non_object(self, tmp_path):
        path = tmp_path / "logging.json"
        path.write_text("[1, 2]")

        assert load_logging_config(path) is None

    def test_load_logging_config_reads_file(self, tmp_path):
        path = tmp_path / "logging.json"
        path.write_text(json.dumps({"version": 1}))

        assert load_logging_config(path) == {"version": 1}


class TestArgumentParser:
    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.env_file is None
        assert args.log_level is None
        assert args.no_sync is False
        assert args.check is False

    def test_log_level_is_case_insensitive(self):
        assert build_parser().parse_args(["--log-level", "debug"]).log_level == "DEBUG"

    def test_invalid_log_level_exits(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "loud"])


def _settings(token: str = "test_token_123") -> MagicMock:
    settings = MagicMock()
    settings.discord.token = SecretStr(token)
    settings.discord.guild_ids = ()
    settings.log_level = "INFO"
    settings.environment = "test"
    return settings


def _container(missing_tools=()) -> MagicMock:
    container = MagicMock()
    container.missing_tools.return_value = list(missing_tools)
    return container


@contextmanager
def _patched_startup(settings, bot=None, container=None):
    bot = bot or MagicMock()
    with (
        patch("discord_music_streamer.config.settings.get_settings", return_value=settings),
        patch("discord_music_streamer.main.setup_logging") as mock_setup_logging,
        patch(
            "discord_music_streamer.config.container.create_container",
            return_value=container or _container(),
        ) as mock_create_container,
        patch(
            "discord_music_streamer.infrastructure.discord.bot.create_bot", return_value=bot
        ) as mock_create_bot,
    ):
        yield mock_setup_logging, mock_create_container, mock_create_bot


class TestMainFunction:
    """Tests for main entry point function."""

    def test_main_returns_error_without_token(self):
        with _patched_startup(_settings("")) as (_, mock_create_container, _):
            assert main([]) == 1

        mock_create_container.assert_not_called()

    def test_main_successful_run(self):
        bot = MagicMock()
        with _patched_startup(_settings(), bot=bot):
            assert main([]) == 0

        bot.run_with_graceful_shutdown.assert_called_once_with("test_token_123")

    def test_main_handles_keyboard_interrupt(self):
        bot = MagicMock()
        bot.run_with_graceful_shutdown.side_effect = KeyboardInterrupt()
        with _patched_startup(_settings(), bot=bot):
            assert main([]) == 0

    def test_main_handles_exception(self):
        bot = MagicMock()
        bot.run_with_graceful_shutdown.side_effect = RuntimeError("Bot crashed!")
        with _patched_startup(_settings(), bot=bot):
            assert main([]) == 1

    def test_main_wires_container_and_bot(self):
        settings = _settings()
        container = _container()
        with _patched_startup(settings, container=container) as (
            mock_setup_logging,
            mock_create_container,
            mock_create_bot,
        ):
            main([])

        mock_setup_logging.assert_called_once_with("INFO")
        mock_create_container.assert_called_once_with(settings)
        mock_create_bot.assert_called_once_with(container, settings)

    def test_log_level_flag_overrides_settings(self):
        settings = _settings()
        overridden = _settings()
        overridden.log_level = "DEBUG"
        settings.model_copy.return_value = overridden

        with _patched_startup(settings) as (mock_setup_logging, _, mock_create_bot):
            main(["--log-level", "debug"])

        assert settings.model_copy.call_args.kwargs["update"]["log_level"] == "DEBUG"
        mock_setup_logging.assert_called_once_with("DEBUG")
        assert mock_create_bot.call_args.args[1] is overridden

    def test_no_sync_flag_disables_command_sync(self):
        settings = _settings()
        settings.model_copy.return_value = _settings()

        with _patched_startup(settings):
            main(["--no-sync"])

        settings.discord.model_copy.assert_called_once_with(update={"sync_on_startup": False})

    def test_check_passes_without_starting_bot(self):
        with _patched_startup(_settings()) as (_, _, mock_create_bot):
            assert main(["--check"]) == 0

        mock_create_bot.assert_not_called()

    def test_check_fails_when_tools_missing(self):
        with _patched_startup(_settings(), container=_container(["ffmpeg"])) as (_, _, mock_create_bot):
            assert main(["--check"]) == 1

        mock_create_bot.assert_not_called()

    def test_env_file_builds_fresh_settings(self, tmp_path):
        env_file = tmp_path / "prod.env"
        with (
            _patched_startup(_settings()),
            patch(
                "discord_music_streamer.config.settings.Settings", return_value=_settings()
            ) as mock_settings_cls,
        ):
            main(["--env-file", str(env_file), "--check"])

        mock_settings_cls.assert_called_once_with(_env_file=env_file)

    def test_cli_exits_with_main_status(self):
        with patch("discord_music_streamer.main.main", return_value=3):
            with pytest.raises(SystemExit) as exc_info:
                cli()

        assert exc_info.value.code == 3
