"""
Logging configuration and setup.

Console output is colored by level; a plain-text file handler is added when
`log_file` is configured. All package loggers hang off the "gearshift" logger.

The bot runs discord.py with its own log handler disabled, so the "discord"
logger is attached to the same handlers at `discord_log_level`. Gateway and
HTTP warnings then appear next to dispatch logs instead of on bare stderr.
"""

import copy
import logging
import sys
from pathlib import Path

from gearshift.config.settings import Settings

ROOT_LOGGER_NAME = "gearshift"
DISCORD_LOGGER_NAME = "discord"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that adds color to console output."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color."""
        if record.levelname not in self.COLORS:
            return super().format(record)
        # Color a copy; the file handler formats the same record afterwards
        colored = copy.copy(record)
        colored.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(colored)


def _build_handlers(settings: Settings) -> list[logging.Handler]:
    """Console handler, plus a file handler when log_file is set."""
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    handlers: list[logging.Handler] = [console_handler]

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    return handlers


def _attach(logger: logging.Logger, level: str, handlers: list[logging.Handler]) -> None:
    logger.setLevel(getattr(logging, level))
    # Remove existing handlers so repeated setup doesn't duplicate output
    logger.handlers.clear()
    for handler in handlers:
        logger.addHandler(handler)
    # Don't propagate to root logger
    logger.propagate = False


def setup_logging(settings: Settings) -> None:
    """
    Configure logging based on settings.

    Handlers carry no level of their own; each logger filters at its
    configured level, so discord.py can be quieter (or louder) than gearshift.

    Args:
        settings: Application settings containing log configuration
    """
    handlers = _build_handlers(settings)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    _attach(root_logger, settings.log_level, handlers)
    _attach(logging.getLogger(DISCORD_LOGGER_NAME), settings.discord_log_level, handlers)

    root_logger.info(
        f"Logging initialized - Level: {settings.log_level} "
        f"(discord.py: {settings.discord_log_level})"
    )
    if settings.log_file:
        root_logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Module names already inside the package (`gearshift.commands.binder`) are
    used as-is; anything else is nested under "gearshift".

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger under the "gearshift" hierarchy
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
