"""
Application logging setup.

A single named logger (``repo_observer``) owns the handlers; modules obtain
children with ``logging.getLogger(__name__)`` and propagate to it.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

APP_LOGGER_NAME = "repo_observer"


class LoggingManager:
    """Configure the application logger with console and optional file output."""

    DEFAULT_LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)8s | %(message)s"
    DEFAULT_LOG_LEVEL = logging.INFO

    def __init__(self,
                 logger_name: str = APP_LOGGER_NAME,
                 log_level: Union[int, str, None] = None,
                 log_format: str = DEFAULT_LOG_FORMAT,
                 log_file: Optional[str] = None,
                 console_output: bool = True,
                 propagate: bool = False):
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv("LOG_LEVEL", "").upper() or self.DEFAULT_LOG_LEVEL
        self.log_file = log_file
        self.console_output = console_output

        self._logger = logging.getLogger(self.logger_name)
        self._logger.setLevel(self.log_level)
        self._logger.propagate = propagate

        # Reconfiguring the same logger name must not duplicate output.
        if self._logger.hasHandlers():
            self._logger.handlers.clear()

        self._formatter = logging.Formatter(log_format)
        self._configure_handlers()

    def _configure_handlers(self) -> None:
        if self.console_output:
            console_handler = logging.StreamHandler(stream=sys.stdout)
            console_handler.setFormatter(self._formatter)
            self._logger.addHandler(console_handler)

        if self.log_file:
            file_handler = logging.FileHandler(self.log_file, mode="a", encoding="utf-8")
            file_handler.setFormatter(self._formatter)
            self._logger.addHandler(file_handler)

    def get_configured_logger(self) -> logging.Logger:
        return self._logger


def configure_logging(log_level: Union[int, str, None] = None,
                      log_file: Optional[str] = None) -> logging.Logger:
    """Configure the application logger once per process and return it."""
    return LoggingManager(log_level=log_level, log_file=log_file).get_configured_logger()


__all__ = ["APP_LOGGER_NAME", "LoggingManager", "configure_logging"]
