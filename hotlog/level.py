"""Severity levels and their literal tags."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, Union

from .exceptions import ConfigError


class Level(IntEnum):
    """Ordered severity levels.

    The ordering is fixed: ``DEBUG < INFO < WARN < ERROR < FATAL``. Each level
    maps to exactly one lowercase tag written into the ``level`` field.
    """

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4

    @property
    def tag(self) -> str:
        """Return the literal tag written for this level."""
        return _TAGS[self]

    @classmethod
    def parse(cls, value: Union["Level", int, str]) -> "Level":
        """Return the level named by ``value``.

        Args:
            value: A :class:`Level`, its integer value, or a tag such as
                ``"info"``. Tags are case-insensitive and ``"warning"`` is
                accepted for ``"warn"``.

        Returns:
            The matching level.

        Raises:
            ConfigError: If ``value`` does not name a level.
        """
        if isinstance(value, str):
            level = _BY_NAME.get(value.strip().lower())
            if level is None:
                raise ConfigError(f"unknown level {value!r}")
            return level
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"level must be a Level, int or str, not {type(value).__name__}")
        try:
            return cls(value)
        except ValueError as exc:
            raise ConfigError(f"level {value} out of range") from exc


_TAGS: Dict[Level, str] = {
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warn",
    Level.ERROR: "error",
    Level.FATAL: "fatal",
}

_BY_NAME: Dict[str, Level] = {tag: level for level, tag in _TAGS.items()}
_BY_NAME["warning"] = Level.WARN

# Pre-encoded header fragments; plain ints hash like their IntEnum members.
LEVEL_FIELDS: Dict[int, bytes] = {
    level: b',"level":"' + tag.encode("ascii") + b'"' for level, tag in _TAGS.items()
}


__all__ = ["Level", "LEVEL_FIELDS"]
