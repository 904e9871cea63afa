"""Exception types raised by lazytool.

A path that matches no pattern is not an error: extraction returns ``None``.
Only broken configuration or unusable input raises.
"""

from __future__ import annotations


class LazytoolError(Exception):
    """Base class for lazytool errors."""


class PatternError(LazytoolError, ValueError):
    """Raised when a pattern definition cannot be compiled or mapped."""

    def __init__(self, message: str, *, regex: str | None = None) -> None:
        super().__init__(message)
        self.regex = regex


class PathEncodingError(LazytoolError, ValueError):
    """Raised when a path cannot be interpreted as text."""

    def __init__(self, path: object) -> None:
        super().__init__(f"Invalid path: {path!r} is not representable as text")
        self.path = path


class ConfigError(LazytoolError, ValueError):
    """Raised when a pattern file is malformed."""


class TimeParseError(LazytoolError, ValueError):
    """Raised when a timestamp string or timezone name cannot be parsed."""
