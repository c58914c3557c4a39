"""Logging setup for the studio: colored console output plus an optional warning log file."""

import logging
from logging import Logger
from typing import Optional
from backdrop.utility.path_finder import Finder


# ANSI color codes for terminal
LEVEL_COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
}
RESET_COLOR = "\033[0m"


class ColorFormatter(logging.Formatter):
    """
    Console formatter that exposes a padded, colorized ``colored_levelname``
    attribute to the format string.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Attach the colored level name and delegate to the base formatter."""
        padded_level = f"{record.levelname + ':':<9}"
        color = LEVEL_COLORS.get(record.levelname, "")
        record.colored_levelname = (
            f"{color}{padded_level}{RESET_COLOR}" if color else padded_level
        )
        return super().format(record)


class AppLogger:
    """
    Central logging helper for the studio backend.

    Usage:
        # once, when the FastAPI app is built
        AppLogger.init(level=logging.INFO)

        # in any module
        logger = AppLogger.get_logger(__name__)
        logger.info("Upload received")
    """

    _configured: bool = False

    @classmethod
    def init(
        cls,
        level: int = logging.INFO,
        log_to_file: bool = False,
        filename: str = "backdrop_studio.log",
    ) -> None:
        """
        Configure the root logger with a colored console handler and, when
        requested, a plain-text file handler for warnings and above.
        Only the first call has an effect.
        """
        if cls._configured:
            return

        cls._configured = True
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        # Drop handlers installed by uvicorn/basicConfig before us
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(
            ColorFormatter("%(colored_levelname)s %(name)s | %(message)s")
        )
        root_logger.addHandler(console_handler)

        if log_to_file:
            logs_dir = Finder().get_directory("logs")
            file_handler = logging.FileHandler(logs_dir / filename, encoding="utf-8")
            file_handler.setLevel(logging.WARNING)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s | %(levelname)-8s | %(name)s | "
                    "%(filename)s:%(lineno)d | %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            root_logger.addHandler(file_handler)

    @staticmethod
    def get_logger(name: Optional[str] = None) -> Logger:
        """Return a named logger; use this instead of logging.getLogger()."""
        return logging.getLogger(name if name is not None else __name__)
