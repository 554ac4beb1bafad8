"""Console log formatting for the link client."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

PACKAGE = "discord_music_link"
_LAYERS = frozenset({"application", "config", "domain", "infrastructure", "utils"})

LEVEL_COLORS: dict[int, str] = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
RESET = "\033[0m"


def short_logger_name(name: str) -> str:
    """Drop the package root and layer from one of this project's logger names.

    ``discord_music_link.infrastructure.lavalink.node`` becomes ``lavalink.node``.
    Names from other libraries (``discord.gateway``, ``aiohttp.client``) are
    returned unchanged.
    """
    parts = name.split(".")
    if parts[0] != PACKAGE or len(parts) == 1:
        return name
    parts = parts[1:]
    if len(parts) > 1 and parts[0] in _LAYERS:
        parts = parts[1:]
    return ".".join(parts)


class ColoredFormatter(logging.Formatter):
    """Shortens project logger names and colors the level name on a TTY.

    Colors are disabled when ``NO_COLOR`` is set or the stream is not a TTY.
    The record handed to :meth:`format` is never modified.
    """

    def __init__(
        self,
        fmt: str | None = DEFAULT_FORMAT,
        datefmt: str | None = DEFAULT_DATEFMT,
        *args,
        stream: TextIO | None = None,
        short_names: bool = True,
        **kwargs,
    ) -> None:
        super().__init__(fmt, datefmt, *args, **kwargs)
        self._stream = stream
        self._short_names = short_names

    def _use_color(self) -> bool:
        if os.environ.get("NO_COLOR") is not None:
            return False
        stream = self._stream or sys.stdout
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        record = logging.makeLogRecord(record.__dict__)
        if self._short_names:
            record.name = short_logger_name(record.name)
        if self._use_color():
            record.levelname = f"{LEVEL_COLORS.get(record.levelno, '')}{record.levelname}{RESET}"
        return super().format(record)


def console_handler(stream: TextIO | None = None, level: int = logging.NOTSET) -> logging.Handler:
    """Stream handler whose formatter checks the same stream for a TTY."""
    stream = stream or sys.stdout
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(stream=stream))
    return handler
