"""Console log formatter with per-level ANSI colors."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Literal


class ColoredFormatter(logging.Formatter):
    """Colors the level name and dims the logger name.

    Color is off when ``NO_COLOR`` is set or the target stream is not a TTY,
    unless ``use_color`` forces it either way.
    """

    LEVEL_COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
        *,
        use_color: bool | None = None,
        stream: IO[str] | None = None,
    ) -> None:
        super().__init__(fmt, datefmt, style)
        self._force_color = use_color
        self._stream = stream

    def use_color(self) -> bool:
        if self._force_color is not None:
            return self._force_color
        if "NO_COLOR" in os.environ:
            return False
        stream = self._stream or sys.stderr
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color():
            return super().format(record)

        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        colored.name = f"{self.DIM}{record.name}{self.RESET}"
        return super().format(colored)
