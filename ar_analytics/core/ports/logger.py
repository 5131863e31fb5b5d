"""
Logger port.
Abstracts logging so core services do not depend on a concrete logging backend.
"""

from abc import ABC, abstractmethod


class Logger(ABC):
    """Port (interface) for structured-ish logging."""

    @abstractmethod
    def info(self, message: str, **kwargs) -> None:
        pass

    @abstractmethod
    def error(self, message: str, **kwargs) -> None:
        pass

    @abstractmethod
    def warn(self, message: str, **kwargs) -> None:
        pass

    @abstractmethod
    def debug(self, message: str, **kwargs) -> None:
        pass

    def warning(self, message: str, **kwargs) -> None:
        """Alias so stdlib-style call sites work with any Logger."""
        self.warn(message, **kwargs)
