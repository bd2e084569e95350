"""Minimal-digit text for numbers and durations."""

from __future__ import annotations

import operator
from datetime import timedelta
from typing import Dict, Union

import numpy as np

Duration = Union[timedelta, int, "np.timedelta64"]

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND

_NON_FINITE: Dict[str, bytes] = {
    "nan": b'"NaN"',
    "inf": b'"+Inf"',
    "-inf": b'"-Inf"',
}


def format_float(value: float) -> bytes:
    """Return the shortest round-trip decimal for ``value`` in positional form.

    Integral values drop the fractional part (``1.0 -> 1``) and exponents are
    never used (``1e-05 -> 0.00001``). Non-finite values become the JSON
    strings ``"NaN"``, ``"+Inf"`` and ``"-Inf"``.
    """
    value = float(value)
    text = repr(value)
    if "e" in text or "n" in text:
        special = _NON_FINITE.get(text)
        if special is not None:
            return special
        text = np.format_float_positional(value, trim="-")
    elif text.endswith(".0"):
        text = text[:-2]
    return text.encode("ascii")


def format_float32(value: float) -> bytes:
    """Round ``value`` to binary32 and format the result as a float64."""
    return format_float(float(np.float32(value)))


def wrap_signed(value: int, bits: int) -> int:
    """Wrap ``value`` to a ``bits``-wide two's-complement integer."""
    half = 1 << (bits - 1)
    return ((operator.index(value) + half) & ((1 << bits) - 1)) - half


def wrap_unsigned(value: int, bits: int) -> int:
    """Wrap ``value`` to a ``bits``-wide unsigned integer."""
    return operator.index(value) & ((1 << bits) - 1)


def duration_ns(value: Duration) -> int:
    """Return ``value`` in whole nanoseconds.

    Args:
        value: A :class:`~datetime.timedelta`, a :class:`numpy.timedelta64`
            or an integer count of nanoseconds.
    """
    if isinstance(value, timedelta):
        return (value.days * 86_400 + value.seconds) * SECOND + value.microseconds * MICROSECOND
    if isinstance(value, np.timedelta64):
        return int(value.astype("timedelta64[ns]").astype(np.int64))
    return operator.index(value)


def _split(u: int, prec: int) -> tuple[int, str]:
    # Fraction with trailing zeros dropped; no point when it is zero.
    whole, rest = divmod(u, 10**prec)
    frac = ("%0*d" % (prec, rest)).rstrip("0") if prec else ""
    return whole, ("." + frac) if frac else ""


def format_duration(ns: int) -> str:
    """Return the unit-suffixed text of a duration given in nanoseconds.

    Durations under one second use the largest fitting unit among ``ns``,
    ``µs`` and ``ms`` (``1.5µs``); longer ones are split into hours, minutes
    and seconds with leading zero units omitted (``1h0m0.5s``). Zero is
    ``0s``.

    Examples:
        ```python
        >>> format_duration(90 * SECOND)
        '1m30s'
        >>> format_duration(1500)
        '1.5µs'
        ```
    """
    neg = ns < 0
    u = -ns if neg else ns
    if u < SECOND:
        if u == 0:
            return "0s"
        if u < MICROSECOND:
            unit, prec = "ns", 0
        elif u < MILLISECOND:
            unit, prec = "µs", 3
        else:
            unit, prec = "ms", 6
        whole, frac = _split(u, prec)
        text = f"{whole}{frac}{unit}"
    else:
        secs, frac = _split(u, 9)
        mins, secs = divmod(secs, 60)
        text = f"{secs}{frac}s"
        if mins:
            hours, mins = divmod(mins, 60)
            text = f"{mins}m{text}"
            if hours:
                text = f"{hours}h{text}"
    return "-" + text if neg else text


__all__ = [
    "Duration",
    "duration_ns",
    "format_duration",
    "format_float",
    "format_float32",
    "wrap_signed",
    "wrap_unsigned",
]
