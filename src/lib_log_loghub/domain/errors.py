"""Error types raised by the Loghub appender."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when appender settings are missing, malformed, or out of bounds."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class AppenderError(RuntimeError):
    """Raised from ``emit`` when the handler is configured not to ignore failures."""


__all__ = ["AppenderError", "ConfigurationError"]
