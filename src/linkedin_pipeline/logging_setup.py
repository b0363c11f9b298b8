"""Coloured console logging for the CLI and the API server."""
from __future__ import annotations

import logging
import sys

RESET = "\033[0m"

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1m\033[31m",
}

# Third-party loggers that are noisy at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "schedule")


class ColoredFormatter(logging.Formatter):
    def __init__(self, fmt: str, datefmt: str | None = None, *, use_color: bool = True) -> None:
        super().__init__(fmt, datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno) if self.use_color else None
        if color:
            return color + message + RESET
        return message


def configure_logging(level: str | int = "INFO", *, stream=None) -> None:
    stream = stream or sys.stderr
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        ColoredFormatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            use_color=hasattr(stream, "isatty") and stream.isatty(),
        )
    )
    root.addHandler(handler)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
