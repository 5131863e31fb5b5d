"""
Standard library implementation of the Logger port.
"""

import logging
import os

from ...core.ports.logger import Logger


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StandardLogger(Logger):
    """Logger backed by the stdlib ``logging`` module with a console handler."""

    def __init__(self, name: str = "ar_analytics", level: int = None):
        self._logger = logging.getLogger(name)

        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(os.getenv("LOG_FORMAT", DEFAULT_FORMAT)))
            self._logger.addHandler(handler)

        if level is None:
            level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
            if not isinstance(level, int):
                level = logging.INFO
        self.set_level(level)

    @staticmethod
    def _format(message: str, kwargs: dict) -> str:
        if not kwargs:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in kwargs.items())
        return f"{message} {pairs}"

    def info(self, message: str, **kwargs) -> None:
        self._logger.info(self._format(message, kwargs))

    def error(self, message: str, **kwargs) -> None:
        self._logger.error(self._format(message, kwargs))

    def warn(self, message: str, **kwargs) -> None:
        self._logger.warning(self._format(message, kwargs))

    def debug(self, message: str, **kwargs) -> None:
        self._logger.debug(self._format(message, kwargs))

    def get_logger(self) -> logging.Logger:
        """Return the underlying stdlib logger."""
        return self._logger

    def set_level(self, level: int) -> None:
        """Set the level on the logger and all of its handlers."""
        self._logger.setLevel(level)
        for handler in self._logger.handlers:
            handler.setLevel(level)
