"""Logging setup for the build pipeline.

Everything logs below the ``pagehooks`` logger: modules either import ``log``
from here or ask :meth:`LogManager.get_logger` for a child logger named after
themselves. Worker threads are told apart by the thread name in each line.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

from pagehooks.utils import get_filename, path_from_root

LOGGER_NAME = "pagehooks"
LOG_PATH = Path(path_from_root(".cache", "logs"))
LATEST_LOG_LINK = Path(path_from_root(".cache", "latest.log"))
LOG_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(threadName)-12s] [%(name)-26s] [%(lineno)-4d] %(message)s"
CONSOLE_FORMAT = "[%(levelname)-8s] %(message)s"

LOG_COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[41m",  # Red background
}
RESET_COLOR = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours each line by level."""

    def format(self, record):
        color = LOG_COLORS.get(record.levelname, "")
        return f"{color}{super().format(record)}{RESET_COLOR}"


class LogManager:
    """Configures the ``pagehooks`` logger hierarchy once per process."""

    __instance: "LogManager | None" = None

    def __new__(cls):
        if cls.__instance is None:
            cls.__instance = super().__new__(cls)
            cls.__instance._logger = None  # type: ignore[attr-defined]
        return cls.__instance

    def __init__(self):
        if getattr(self, "_logger", None) is None:
            self._logger = self._init_logger()

    @staticmethod
    def _init_logger() -> logging.Logger:
        log_file_path = Path(get_filename("Log_", ".log", LOG_PATH))
        logging.config.dictConfig(LogManager._build_logging_config(log_file_path))
        LogManager._create_latest_log_link(log_file_path)
        return logging.getLogger(LOGGER_NAME)

    @staticmethod
    def _build_logging_config(log_file_path: Path) -> Dict[str, Any]:
        """Console at INFO, the per-run file at DEBUG, both on the ``pagehooks`` logger.

        Child loggers such as ``pagehooks.hooks.executor`` carry no handlers of
        their own and propagate here.
        """

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console_formatter": {"()": ColoredFormatter, "format": CONSOLE_FORMAT},
                "file_formatter": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": "INFO",
                    "formatter": "console_formatter",
                },
                "file": {
                    "class": "logging.FileHandler",
                    "filename": str(log_file_path),
                    "level": "DEBUG",
                    "mode": "w",
                    "formatter": "file_formatter",
                    "encoding": "utf8",
                    "delay": True,
                },
            },
            "loggers": {
                LOGGER_NAME: {
                    "handlers": ["console", "file"],
                    "level": "DEBUG",
                },
            },
        }

    @staticmethod
    def _create_latest_log_link(log_file_path: Path) -> None:
        try:
            LATEST_LOG_LINK.parent.mkdir(parents=True, exist_ok=True)
            if LATEST_LOG_LINK.exists() or LATEST_LOG_LINK.is_symlink():
                LATEST_LOG_LINK.unlink()
            LATEST_LOG_LINK.symlink_to(log_file_path)
        except OSError as exc:  # pragma: no cover - platform dependent
            logging.getLogger(LOGGER_NAME).warning("Failed to create log symlink: %s", exc)

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Return the pipeline logger, or the child logger ``name`` below it."""

        if not name or name == LOGGER_NAME:
            return self._logger
        if not name.startswith(LOGGER_NAME + "."):
            name = f"{LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    def set_console_level(self, level: int | str) -> None:
        """Change the level of the console handler, e.g. for ``--verbose`` runs."""

        for handler in self._logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(level)


log = LogManager().get_logger()
