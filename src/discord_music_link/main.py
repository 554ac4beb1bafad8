#!/usr/bin/env python3
"""Main entry point: run a discord.py client wired to the node Manager."""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from pathlib import Path

from discord_music_link.domain.shared.messages import ErrorMessages, LogTemplates
from discord_music_link.utils.logging import console_handler

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(config_path) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(console_handler())
        logging.getLogger(__name__).warning(LogTemplates.LOGGING_CONFIG_FALLBACK, config_path)

    logging.getLogger().setLevel(resolved_level)


def main() -> int:
    from discord_music_link.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    logger = logging.getLogger(__name__)

    token_value = settings.discord.token.get_secret_value()
    if not token_value:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING, settings.environment)

    from discord_music_link.infrastructure.discord.bot import create_bot

    bot = create_bot(settings)

    try:
        bot.run(token_value, log_handler=None)
        logger.info(LogTemplates.BOT_STOPPED)
        return 0
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
