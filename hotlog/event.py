"""Incremental JSON record builder.

An :class:`Event` holds the bytes of one record under construction. The
buffer always holds a valid object prefix: it starts with ``{`` and every
field append writes a leading ``,`` so closing it with ``}`` is enough to
finish the record. Each field value is encoded in full before anything is
appended, so a field method that raises leaves the buffer as it was.
"""

from __future__ import annotations

import math
import operator
import os
import sys
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from .arrays import append_ndarray
from .escape import BytesLike, encode_key, escape_string, quote_bytes, quote_string
from .exceptions import PoolError
from .numfmt import (
    Duration,
    duration_ns,
    format_duration,
    format_float,
    format_float32,
    wrap_signed,
    wrap_unsigned,
)
from .stacks import stacks
from .timefmt import append_time, append_time_format

if TYPE_CHECKING:  # pragma: no cover
    from .logger import Logger

FATAL_EXIT_CODE = 255

_TRUE = b"true"
_FALSE = b"false"
_NULL = b"null"


def caller_field(depth: int, escape_html: bool = False) -> bytes:
    """Return the ``,"caller":"<file>:<line>"`` fragment for a stack frame.

    Args:
        depth: Frames to walk up from the function calling ``caller_field``;
            ``0`` is that function itself.
        escape_html: Escape the location like any other string.

    Returns:
        The encoded fragment. An unreachable frame gives ``???:1`` and a
        negative or unknown line number is clamped to ``0``.
    """
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        file, line = "???", 1
    else:
        file = os.path.basename(frame.f_code.co_filename)
        line = frame.f_lineno
        if line is None or line < 0:
            line = 0
    return b',"caller":"' + escape_string(f"{file}:{line}", escape_html).encode("utf-8") + b'"'


def _quoted_duration(value: Duration) -> bytes:
    return b'"' + format_duration(duration_ns(value)).encode("utf-8") + b'"'


class Event:
    """Mutable builder for a single log record.

    Events come from :meth:`Logger.with_level <hotlog.logger.Logger.with_level>`
    and its level shortcuts. Field methods return the event so calls chain;
    :meth:`send`, :meth:`msg` or :meth:`msgf` finish the record, write it
    and hand the event back to its pool. An event belongs to the thread that
    obtained it and must not be touched after its terminal call.

    A field method that raises, for instance :meth:`integer` given a float,
    adds nothing to the record.

    Examples:
        ```python
        >>> log.info().string("user", "ann").integer("retries", 3).msg("login ok")
        ```
    """

    __slots__ = ("buf", "fatal", "escape_html", "time_format", "write", "logger", "live")

    enabled = True

    def __init__(self) -> None:
        self.buf = bytearray()
        self.fatal = False
        self.escape_html = False
        self.time_format = ""
        self.write: Optional[Callable[[bytes], Any]] = None
        self.logger: Optional["Logger"] = None
        self.live = False

    def reset(self, logger: "Logger", fatal: bool) -> None:
        """Empty the buffer and take the per-record settings from ``logger``."""
        self.buf.clear()
        self.fatal = fatal
        self.escape_html = logger.escape_html
        self.time_format = logger.time_format
        self.write = logger.writer.write
        self.logger = logger

    def _field(self, key: str, value: bytes) -> "Event":
        buf = self.buf
        buf += encode_key(key, self.escape_html)
        buf += value
        return self

    # ---- scalars ------------------------------------------------------

    def boolean(self, key: str, value: bool) -> "Event":
        """Add a ``true``/``false`` field."""
        return self._field(key, _TRUE if value else _FALSE)

    def integer(self, key: str, value: int) -> "Event":
        """Add an integer field of any size."""
        return self._field(key, b"%d" % operator.index(value))

    def int8(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_signed(value, 8))

    def int16(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_signed(value, 16))

    def int32(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_signed(value, 32))

    def int64(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_signed(value, 64))

    def uint8(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_unsigned(value, 8))

    def uint16(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_unsigned(value, 16))

    def uint32(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_unsigned(value, 32))

    def uint64(self, key: str, value: int) -> "Event":
        return self.integer(key, wrap_unsigned(value, 64))

    def float64(self, key: str, value: float) -> "Event":
        """Add a float field using the shortest round-trip digits."""
        return self._field(key, format_float(value))

    def float32(self, key: str, value: float) -> "Event":
        """Add a float field after rounding ``value`` to single precision."""
        return self._field(key, format_float32(value))

    def dur(self, key: str, value: Duration) -> "Event":
        """Add a duration as quoted unit-suffixed text such as ``"1.5s"``."""
        return self._field(key, _quoted_duration(value))

    def time(self, key: str, value: datetime) -> "Event":
        """Add a timestamp in the logger's time format."""
        text = bytearray()
        if self.time_format:
            append_time_format(text, value, self.time_format, self.escape_html)
        else:
            append_time(text, value)
        return self._field(key, text)

    def timestamp(self) -> "Event":
        """Add a ``timestamp`` field with the current Unix time in seconds."""
        seconds = math.floor(self.logger.clock().timestamp())
        self.buf += b',"timestamp":%d' % seconds
        return self

    def string(self, key: str, value: str) -> "Event":
        """Add an escaped string field."""
        return self._field(key, quote_string(value, self.escape_html))

    def byte_str(self, key: str, value: Optional[BytesLike]) -> "Event":
        """Add raw text bytes as an escaped string field.

        ``value`` is read in place; it must not change until the call
        returns. ``None`` gives an empty string.
        """
        return self._field(key, quote_bytes(value, self.escape_html))

    def err(self, value: Optional[BaseException]) -> "Event":
        """Add an ``error`` field with the exception message, or ``null``."""
        text = _NULL if value is None else quote_string(str(value), self.escape_html)
        self.buf += b',"error":' + text
        return self

    def raw_json(self, key: str, value: Optional[BytesLike | str]) -> "Event":
        """Add ``value`` verbatim as the field value.

        Nothing is validated: ``value`` must already be well-formed JSON.
        ``None`` gives ``null``.
        """
        if value is None:
            data: Any = _NULL
        elif isinstance(value, str):
            data = value.encode("utf-8")
        else:
            data = memoryview(value)
        return self._field(key, data)

    def obj(self, key: str, value: Any) -> "Event":
        """Add any value through the logger's general-purpose marshaler.

        The marshaled JSON text is stored as a string. If marshaling fails
        the field holds ``"marshaling error: <message>"`` instead and the
        rest of the record is unaffected.
        """
        html = self.escape_html
        try:
            text = quote_string(self.logger.marshal(value), html)
        except Exception as exc:
            text = quote_string(f"marshaling error: {exc}", html)
        return self._field(key, text)

    def ndarray(self, key: str, value: Any) -> "Event":
        """Add a one-dimensional numpy array using the matching array method."""
        return append_ndarray(self, key, value)

    def caller(self) -> "Event":
        """Add a ``caller`` field naming the line that called this method."""
        self.buf += caller_field(1, self.escape_html)
        return self

    # ---- arrays -------------------------------------------------------

    def _array(self, key: str, items: Optional[Iterable[bytes]]) -> "Event":
        body = b"" if items is None else b",".join(items)
        return self._field(key, b"[" + body + b"]")

    def bools(self, key: str, values: Optional[Iterable[bool]]) -> "Event":
        return self._array(key, None if values is None else (_TRUE if v else _FALSE for v in values))

    def ints(self, key: str, values: Optional[Iterable[int]]) -> "Event":
        return self._array(
            key, None if values is None else (b"%d" % operator.index(v) for v in values)
        )

    def uints(self, key: str, values: Optional[Iterable[int]]) -> "Event":
        return self._array(
            key, None if values is None else (b"%d" % wrap_unsigned(v, 64) for v in values)
        )

    def floats64(self, key: str, values: Optional[Iterable[float]]) -> "Event":
        return self._array(key, None if values is None else (format_float(v) for v in values))

    def floats32(self, key: str, values: Optional[Iterable[float]]) -> "Event":
        return self._array(key, None if values is None else (format_float32(v) for v in values))

    def durs(self, key: str, values: Optional[Iterable[Duration]]) -> "Event":
        return self._array(key, None if values is None else (_quoted_duration(v) for v in values))

    def strs(self, key: str, values: Optional[Iterable[str]]) -> "Event":
        html = self.escape_html
        return self._array(key, None if values is None else (quote_string(v, html) for v in values))

    def errs(self, key: str, values: Optional[Iterable[Optional[BaseException]]]) -> "Event":
        """Add an array of exception messages with ``null`` for ``None`` members."""
        html = self.escape_html
        return self._array(
            key,
            None
            if values is None
            else (_NULL if v is None else quote_string(str(v), html) for v in values),
        )

    # ---- terminal calls -----------------------------------------------

    def send(self) -> None:
        """Close the record and write it without a message."""
        if not self.live:
            raise PoolError("event used after its terminal call")
        self.buf += b"}\n"
        self._emit()

    def msg(self, text: str) -> None:
        """Add a ``message`` field, close the record and write it."""
        if not self.live:
            raise PoolError("event used after its terminal call")
        self.buf += b',"message":' + quote_string(text, self.escape_html) + b"}\n"
        self._emit()

    def msgf(self, fmt: str, *args: Any) -> None:
        """Like :meth:`msg` with a ``%``-style formatted message."""
        self.msg(fmt % args if args else fmt)

    def _emit(self) -> None:
        pool = self.logger.pool
        try:
            self.write(self.buf)
        finally:
            try:
                if self.fatal:
                    self._terminate()
            finally:
                pool.release(self)

    def _terminate(self) -> None:
        write = self.write
        write(stacks(False))
        write(stacks(True))
        flush = getattr(self.logger.writer, "flush", None)
        if flush is not None:
            flush()
        self.logger.exit(FATAL_EXIT_CODE)


class NoopEvent(Event):
    """Event returned when a level is gated out.

    Every method does nothing and returns the same instance, so chained calls
    on a disabled level cost one attribute lookup and call each.
    """

    __slots__ = ()

    enabled = False

    def __init__(self) -> None:  # pragma: no cover - noop
        pass

    def __repr__(self) -> str:
        return "<hotlog.DISABLED>"

    def reset(self, logger: "Logger", fatal: bool) -> None:
        raise PoolError("the disabled event is not poolable")

    def boolean(self, key: str, value: bool) -> "Event":
        return self

    def integer(self, key: str, value: int) -> "Event":
        return self

    def int8(self, key: str, value: int) -> "Event":
        return self

    def int16(self, key: str, value: int) -> "Event":
        return self

    def int32(self, key: str, value: int) -> "Event":
        return self

    def int64(self, key: str, value: int) -> "Event":
        return self

    def uint8(self, key: str, value: int) -> "Event":
        return self

    def uint16(self, key: str, value: int) -> "Event":
        return self

    def uint32(self, key: str, value: int) -> "Event":
        return self

    def uint64(self, key: str, value: int) -> "Event":
        return self

    def float64(self, key: str, value: float) -> "Event":
        return self

    def float32(self, key: str, value: float) -> "Event":
        return self

    def dur(self, key: str, value: Duration) -> "Event":
        return self

    def time(self, key: str, value: datetime) -> "Event":
        return self

    def timestamp(self) -> "Event":
        return self

    def string(self, key: str, value: str) -> "Event":
        return self

    def byte_str(self, key: str, value: Optional[BytesLike]) -> "Event":
        return self

    def err(self, value: Optional[BaseException]) -> "Event":
        return self

    def raw_json(self, key: str, value: Optional[BytesLike | str]) -> "Event":
        return self

    def obj(self, key: str, value: Any) -> "Event":
        return self

    def ndarray(self, key: str, value: Any) -> "Event":
        return self

    def caller(self) -> "Event":
        return self

    def bools(self, key: str, values: Optional[Iterable[bool]]) -> "Event":
        return self

    def ints(self, key: str, values: Optional[Iterable[int]]) -> "Event":
        return self

    def uints(self, key: str, values: Optional[Iterable[int]]) -> "Event":
        return self

    def floats64(self, key: str, values: Optional[Iterable[float]]) -> "Event":
        return self

    def floats32(self, key: str, values: Optional[Iterable[float]]) -> "Event":
        return self

    def durs(self, key: str, values: Optional[Iterable[Duration]]) -> "Event":
        return self

    def strs(self, key: str, values: Optional[Iterable[str]]) -> "Event":
        return self

    def errs(self, key: str, values: Optional[Iterable[Optional[BaseException]]]) -> "Event":
        return self

    def send(self) -> None:
        return None

    def msg(self, text: str) -> None:
        return None

    def msgf(self, fmt: str, *args: Any) -> None:
        return None


DISABLED = NoopEvent()


__all__ = ["DISABLED", "Event", "FATAL_EXIT_CODE", "NoopEvent", "caller_field"]
