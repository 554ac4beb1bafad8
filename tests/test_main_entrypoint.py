"""
Tests for main.py - Main Entry Point

Tests for:
- Logging configuration
- Token validation
- Bot creation and run
- Error handling
"""

import json
import logging
from unittest.mock import MagicMock, mock_open, patch

import pytest
from pydantic import SecretStr

from discord_music_link.main import cli, main, setup_logging


class TestLoggingSetup:
    """Tests for logging configuration."""

    def _make_valid_config(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {},
            "loggers": {
                "discord": {"level": "WARNING"},
                "aiohttp": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
            "root": {"level": "INFO", "handlers": []},
        }

    def test_dictconfig_called_when_json_exists(self):
        """Should call dictConfig when logging_config.json exists."""
        config = self._make_valid_config()
        m = mock_open(read_data=json.dumps(config))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig") as mock_dc,
        ):
            setup_logging()

            mock_dc.assert_called_once_with(config)

    def test_fallback_to_console_handler_when_json_missing(self):
        """Should install the colored console handler when the config file is missing."""
        handler = logging.NullHandler()
        with (
            patch("builtins.open", side_effect=FileNotFoundError),
            patch("discord_music_link.main.console_handler", return_value=handler) as mock_ch,
        ):
            setup_logging()

            mock_ch.assert_called_once()
            assert handler in logging.getLogger().handlers

        logging.getLogger().removeHandler(handler)

    def test_fallback_when_json_malformed(self):
        """Should fall back when the JSON is malformed."""
        handler = logging.NullHandler()
        m = mock_open(read_data="{invalid json")
        with (
            patch("builtins.open", m),
            patch("discord_music_link.main.console_handler", return_value=handler) as mock_ch,
        ):
            setup_logging()

            mock_ch.assert_called_once()

        logging.getLogger().removeHandler(handler)

    def test_root_logger_level_overridden_by_settings(self):
        """Should override root logger level with the provided log_level."""
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

    def test_shipped_config_is_valid(self):
        """The repository's logging_config.json should load with dictConfig."""
        from discord_music_link.main import _LOGGING_CONFIG_PATH

        with open(_LOGGING_CONFIG_PATH) as f:
            config = json.load(f)

        assert config["formatters"]["colored"]["()"].endswith("ColoredFormatter")
        for name in ("discord", "aiohttp", "httpx"):
            assert config["loggers"][name]["level"] == "WARNING"


def _mock_settings(token: str) -> MagicMock:
    mock_discord = MagicMock()
    mock_discord.token = SecretStr(token)

    mock_settings = MagicMock()
    mock_settings.discord = mock_discord
    mock_settings.log_level = "INFO"
    mock_settings.environment = "test"
    return mock_settings


class TestMainFunction:
    """Tests for main entry point function."""

    def test_main_returns_error_without_token(self):
        """Should return error code when Discord token is missing."""
        with (
            patch(
                "discord_music_link.config.settings.get_settings",
                return_value=_mock_settings(""),
            ),
            patch("discord_music_link.main.setup_logging"),
            patch("discord_music_link.infrastructure.discord.bot.create_bot") as mock_create_bot,
        ):
            exit_code = main()

        assert exit_code == 1
        mock_create_bot.assert_not_called()

    def test_main_successful_run(self):
        """Should return 0 on successful bot run."""
        mock_settings = _mock_settings("test_token_123")
        mock_bot = MagicMock()

        with (
            patch("discord_music_link.config.settings.get_settings", return_value=mock_settings),
            patch("discord_music_link.main.setup_logging"),
            patch(
                "discord_music_link.infrastructure.discord.bot.create_bot", return_value=mock_bot
            ) as mock_create_bot,
        ):
            exit_code = main()

        assert exit_code == 0
        mock_create_bot.assert_called_once_with(mock_settings)
        mock_bot.run.assert_called_once_with("test_token_123", log_handler=None)

    def test_main_handles_keyboard_interrupt(self):
        """Should return 0 on KeyboardInterrupt."""
        mock_bot = MagicMock()
        mock_bot.run.side_effect = KeyboardInterrupt()

        with (
            patch(
                "discord_music_link.config.settings.get_settings",
                return_value=_mock_settings("test_token_123"),
            ),
            patch("discord_music_link.main.setup_logging"),
            patch(
                "discord_music_link.infrastructure.discord.bot.create_bot", return_value=mock_bot
            ),
        ):
            exit_code = main()

        assert exit_code == 0

    def test_main_handles_exception(self):
        """Should return error code on unhandled exception."""
        mock_bot = MagicMock()
        mock_bot.run.side_effect = RuntimeError("Bot crashed!")

        with (
            patch(
                "discord_music_link.config.settings.get_settings",
                return_value=_mock_settings("test_token_123"),
            ),
            patch("discord_music_link.main.setup_logging"),
            patch(
                "discord_music_link.infrastructure.discord.bot.create_bot", return_value=mock_bot
            ),
        ):
            exit_code = main()

        assert exit_code == 1

    def test_cli_exits_with_main_code(self):
        with (
            patch("discord_music_link.main.main", return_value=1),
            pytest.raises(SystemExit) as exc_info,
        ):
            cli()

        assert exc_info.value.code == 1
