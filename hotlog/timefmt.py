"""Fixed-width ISO-8601 timestamps written by direct digit placement."""

from __future__ import annotations

from datetime import datetime, timezone

from .escape import append_string

# Quoted template; every digit below is overwritten in place.
_TEMPLATE = b'"2006-01-02T15:04:05.999Z"'
_ZERO = 48


def append_time(buf: bytearray, t: datetime) -> None:
    """Append ``t`` as ``"YYYY-MM-DDTHH:MM:SS.mmmZ"`` (24 bytes with quotes).

    Aware datetimes are converted to UTC, naive ones are taken as UTC.
    Microseconds are truncated to milliseconds, never rounded.

    Args:
        buf: Destination buffer.
        t: Point in time with a four-digit year.
    """
    if t.tzinfo is not None:
        t = t.astimezone(timezone.utc)
    n = len(buf)
    buf += _TEMPLATE
    # year
    a = t.year
    b = a // 10
    buf[n + 4] = _ZERO + a - 10 * b
    a = b
    b = a // 10
    buf[n + 3] = _ZERO + a - 10 * b
    a = b
    b = a // 10
    buf[n + 2] = _ZERO + a - 10 * b
    buf[n + 1] = _ZERO + b
    # month
    a = t.month
    b = a // 10
    buf[n + 7] = _ZERO + a - 10 * b
    buf[n + 6] = _ZERO + b
    # day
    a = t.day
    b = a // 10
    buf[n + 10] = _ZERO + a - 10 * b
    buf[n + 9] = _ZERO + b
    # hour
    a = t.hour
    b = a // 10
    buf[n + 13] = _ZERO + a - 10 * b
    buf[n + 12] = _ZERO + b
    # minute
    a = t.minute
    b = a // 10
    buf[n + 16] = _ZERO + a - 10 * b
    buf[n + 15] = _ZERO + b
    # second
    a = t.second
    b = a // 10
    buf[n + 19] = _ZERO + a - 10 * b
    buf[n + 18] = _ZERO + b
    # millisecond
    a = t.microsecond // 1000
    b = a // 10
    buf[n + 23] = _ZERO + a - 10 * b
    a = b
    b = a // 10
    buf[n + 22] = _ZERO + a - 10 * b
    buf[n + 21] = _ZERO + b


def append_time_format(buf: bytearray, t: datetime, fmt: str, escape_html: bool = False) -> None:
    """Append ``t`` rendered with the ``strftime`` pattern ``fmt`` as a JSON string."""
    append_string(buf, t.strftime(fmt), escape_html)


def format_time(t: datetime) -> str:
    """Return the fast fixed-width rendering of ``t`` without quotes."""
    buf = bytearray()
    append_time(buf, t)
    return buf[1:-1].decode("ascii")


__all__ = ["append_time", "append_time_format", "format_time"]
