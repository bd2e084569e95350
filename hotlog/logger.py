"""Level-gated logger that opens pooled events."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import numpy as np

from .escape import escape_string
from .event import DISABLED, Event, caller_field
from .exceptions import ConfigError
from .level import LEVEL_FIELDS, Level
from .pool import EventPool
from .sinks import Sink, stderr_sink
from .timefmt import append_time, append_time_format

SHARED_POOL = EventPool()


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _json_default(value: Any) -> Any:
    if isinstance(value, (np.generic, np.ndarray)):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def marshal_json(value: Any) -> str:
    """Serialize ``value`` to compact JSON text.

    numpy scalars and arrays are converted with ``tolist``. NaN and
    infinities are rejected like any other value JSON cannot represent.

    Raises:
        TypeError: If ``value`` contains an unsupported type.
        ValueError: If ``value`` is circular or holds non-finite floats.
    """
    return json.dumps(
        value,
        default=_json_default,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


@dataclass(frozen=True)
class Logger:
    """Immutable logger configuration and level gate.

    Attributes:
        level: Minimum level that produces output; also accepts a level name.
        caller: Add a ``caller`` field with the file and line of the call.
        escape_html: Escape ``<``, ``>`` and ``&`` in every string.
        time_field: Key of the time field; empty means ``"time"``.
        time_format: ``strftime`` pattern for times; empty selects the fixed
            ``YYYY-MM-DDTHH:MM:SS.mmmZ`` formatter.
        writer: Sink that receives each finished record in one write.
        clock: Returns the current time for the header.
        marshal: Serializes values passed to :meth:`Event.obj`.
        exit: Terminates the process after a fatal record.
        pool: Free list events are taken from and returned to.

    Examples:
        ```python
        >>> log = Logger(level="info", writer=StreamSink(sys.stdout.buffer))
        >>> log.info().string("user", "ann").integer("retries", 3).msg("login ok")
        {"time":"2024-05-01T12:00:00.000Z","level":"info","user":"ann","retries":3,"message":"login ok"}
        ```
    """

    level: Level = Level.DEBUG
    caller: bool = False
    escape_html: bool = False
    time_field: str = ""
    time_format: str = ""
    writer: Sink = field(default_factory=stderr_sink, repr=False, compare=False)
    clock: Callable[[], datetime] = field(default=utcnow, repr=False, compare=False)
    marshal: Callable[[Any], str] = field(default=marshal_json, repr=False, compare=False)
    exit: Callable[[int], Any] = field(default=os._exit, repr=False, compare=False)
    pool: EventPool = field(default=SHARED_POOL, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate options and pre-encode the header prefix."""
        object.__setattr__(self, "level", Level.parse(self.level))
        if not callable(getattr(self.writer, "write", None)):
            raise ConfigError("writer must provide write(data)")
        if not isinstance(self.time_field, str) or not isinstance(self.time_format, str):
            raise ConfigError("time_field and time_format must be strings")
        if self.time_field:
            prefix = b'{"' + escape_string(self.time_field, self.escape_html).encode("utf-8") + b'":'
        else:
            prefix = b'{"time":'
        object.__setattr__(self, "_prefix", prefix)

    # ---- gate ---------------------------------------------------------

    def _open(self, level: int) -> Event:
        tag = LEVEL_FIELDS.get(level)
        if tag is None or level < self.level:
            return DISABLED
        event = self.pool.acquire()
        event.reset(self, level == Level.FATAL)
        buf = event.buf
        buf += self._prefix
        if self.time_format:
            append_time_format(buf, self.clock(), self.time_format, self.escape_html)
        else:
            append_time(buf, self.clock())
        buf += tag
        if self.caller:
            # _open <- public entry point <- call site
            buf += caller_field(2, self.escape_html)
        return event

    def enabled(self, level: int) -> bool:
        """Return whether a record at ``level`` would be written."""
        return level in LEVEL_FIELDS and level >= self.level

    def with_level(self, level: int) -> Event:
        """Open an event at ``level``.

        Args:
            level: Severity of the record.

        Returns:
            A live :class:`~hotlog.event.Event`, or
            :data:`~hotlog.event.DISABLED` when ``level`` is below the
            logger's minimum or is not a known level.
        """
        return self._open(level)

    def debug(self) -> Event:
        """Open a ``debug`` event."""
        return self._open(Level.DEBUG)

    def info(self) -> Event:
        """Open an ``info`` event."""
        return self._open(Level.INFO)

    def warn(self) -> Event:
        """Open a ``warn`` event."""
        return self._open(Level.WARN)

    def error(self) -> Event:
        """Open an ``error`` event."""
        return self._open(Level.ERROR)

    def fatal(self) -> Event:
        """Open a ``fatal`` event; finishing it terminates the process."""
        return self._open(Level.FATAL)


__all__ = ["Logger", "SHARED_POOL", "marshal_json", "utcnow"]
