#!/usr/bin/env python3
"""Command-line entry point: configure logging, wire the container and run the bot."""

from __future__ import annotations

import argparse
import json
import logging
import logging.config
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from discord_music_streamer.config.settings import LOG_LEVEL_NAMES
from discord_music_streamer.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord_music_streamer.config.settings import Settings

LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FALLBACK_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────


def load_logging_config(path: Path) -> dict[str, Any] | None:
    """Read a ``dictConfig`` JSON file; None when it is missing or not a JSON object."""
    try:
        with open(path) as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return None
    return config if isinstance(config, dict) else None


def setup_logging(log_level: str = "INFO", config_path: Path = LOGGING_CONFIG_PATH) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    config = load_logging_config(config_path)
    problem = None if config is not None else "missing or unreadable"
    if config is not None:
        try:
            logging.config.dictConfig(config)
        except ValueError as e:
            problem = str(e)

    if problem is not None:
        logging.basicConfig(level=level, format=FALLBACK_FORMAT, datefmt=FALLBACK_DATEFMT)
        logger.warning(LogTemplates.LOGGING_FALLBACK, config_path, problem)

    # settings win over the level in the file
    logging.getLogger().setLevel(level)


# ─────────────────────────────────────────────────────────────────
# Command line
# ─────────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discord-music-streamer",
        description="Stream YouTube and Spotify tracks into Discord voice channels.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from the environment and .env (DISCORD__TOKEN,
SPOTIFY__CLIENT_ID, SPOTIFY__CLIENT_SECRET, PLAYBACK__TICK_INTERVAL_SECONDS, ...).

  %(prog)s                    # run the bot
  %(prog)s --check            # validate configuration and exit
  %(prog)s --env-file prod.env --no-sync
        """,
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="read settings from this file instead of .env",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVEL_NAMES,
        default=None,
        help="override LOG_LEVEL",
    )
    parser.add_argument(
        "--no-sync",
        action="store_true",
        help="do not sync slash commands on startup",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="validate the token and required executables, then exit",
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    from discord_music_streamer.config.settings import Settings, get_settings

    settings = Settings(_env_file=args.env_file) if args.env_file else get_settings()

    updates: dict[str, Any] = {}
    if args.log_level:
        updates["log_level"] = args.log_level
    if args.no_sync:
        updates["discord"] = settings.discord.model_copy(update={"sync_on_startup": False})
    return settings.model_copy(update=updates) if updates else settings


def log_summary(settings: Settings) -> None:
    logger.info(
        LogTemplates.BOT_CONFIG_SUMMARY,
        "enabled" if settings.spotify.configured else "disabled",
        settings.playback.tick_interval_seconds,
        len(settings.discord.guild_ids) if settings.discord.sync_on_startup else 0,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args)
    setup_logging(settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    log_summary(settings)

    from discord_music_streamer.config.container import create_container

    container = create_container(settings)

    if args.check:
        missing = container.missing_tools()
        if missing:
            logger.error(LogTemplates.BOT_CHECK_FAILED, ", ".join(missing) + " not found")
            return 1
        logger.info(LogTemplates.BOT_CHECK_OK)
        return 0

    from discord_music_streamer.infrastructure.discord.bot import create_bot

    bot = create_bot(container, settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point (``[project.scripts]`` in pyproject.toml)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
