"""Logging setup for the command-line tool."""

from __future__ import annotations

import logging

import click

LOGGER_NAME = "pginspect"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

LEVEL_COLORS = {
    logging.DEBUG: "white",
    logging.INFO: "cyan",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class ColorFormatter(logging.Formatter):
    """Formatter that colours the level name."""

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = LEVEL_COLORS.get(record.levelno)
        if color:
            record.levelname = click.style(f"{levelname:<7}", fg=color, bold=record.levelno >= logging.ERROR)
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def configure_logging(
    level: str = "INFO",
    timestamp_format: str = "%b %d, %H:%M:%S",
    color: bool = True,
) -> logging.Logger:
    """
    Send pginspect log records to stderr.

    Replaces handlers installed by an earlier call, so it is safe to call
    once per command invocation.

    Args:
        level: Log level name
        timestamp_format: strftime format for the full timestamp
        color: Colourise level names

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    formatter_class = ColorFormatter if color else logging.Formatter
    handler.setFormatter(formatter_class(LOG_FORMAT, datefmt=timestamp_format))
    logger.addHandler(handler)
    return logger
