"""
Logging configuration and setup.

Provides colored console output and optional file output. The same handlers
are attached to the discord.py and SQLAlchemy loggers so gateway and SQL
messages end up next to Helya's own.
"""

import logging
import sys
from pathlib import Path

from helya.config.settings import Settings

# Third-party loggers routed through Helya's handlers, with the lowest level
# they are allowed to emit at. discord.py is very chatty at DEBUG.
LIBRARY_LOGGERS = {
    "discord": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
}


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
        # Handlers share records, so color a copy
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        return super().format(record)


def _build_handlers(settings: Settings) -> list[logging.Handler]:
    level = getattr(logging, settings.log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handlers: list[logging.Handler] = [console_handler]

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handlers.append(file_handler)

    return handlers


def setup_logging(settings: Settings) -> None:
    """
    Configure logging based on settings.

    Args:
        settings: Application settings containing log configuration
    """
    level = getattr(logging, settings.log_level)
    handlers = _build_handlers(settings)

    root_logger = logging.getLogger("helya")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)
    # Don't propagate to root logger
    root_logger.propagate = False

    for name, floor in LIBRARY_LOGGERS.items():
        if name == "sqlalchemy.engine" and settings.environment == "development":
            # Statement logging, bound parameters included
            floor = logging.INFO
        library_logger = logging.getLogger(name)
        library_logger.setLevel(max(level, floor))
        library_logger.handlers.clear()
        for handler in handlers:
            library_logger.addHandler(handler)
        library_logger.propagate = False

    root_logger.info(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        root_logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger under the ``helya`` tree
    """
    if name == "helya" or name.startswith("helya."):
        return logging.getLogger(name)
    return logging.getLogger(f"helya.{name}")
