"""Custom exception types used across :mod:`hotlog`."""

from __future__ import annotations


class HotlogError(Exception):
    """Base class for all package-specific errors."""


class ConfigError(HotlogError, ValueError):
    """Raised for invalid logger options such as an unknown level name."""


class InputError(HotlogError, ValueError):
    """Raised for malformed user input such as a field without a key."""


class PoolError(HotlogError, RuntimeError):
    """Raised when an event is used after it was handed back to its pool."""


__all__ = [
    "HotlogError",
    "ConfigError",
    "InputError",
    "PoolError",
]
