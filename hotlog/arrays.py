"""numpy array fields."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .event import Event


def append_ndarray(event: "Event", key: str, value: Any) -> "Event":
    """Add ``value`` as a JSON array chosen from its dtype.

    Booleans, signed and unsigned integers, ``float32``/``float64`` and
    ``timedelta64`` arrays map to :meth:`~hotlog.event.Event.bools`,
    :meth:`~hotlog.event.Event.ints`, :meth:`~hotlog.event.Event.uints`,
    :meth:`~hotlog.event.Event.floats32`,
    :meth:`~hotlog.event.Event.floats64` and
    :meth:`~hotlog.event.Event.durs`; unicode arrays map to
    :meth:`~hotlog.event.Event.strs`. Anything else, including arrays with
    more than one dimension, goes through :meth:`~hotlog.event.Event.obj`.

    Args:
        event: Live event to append to.
        key: Field name.
        value: Array or array-like.

    Returns:
        ``event``, for chaining.
    """
    arr = np.asarray(value)
    if arr.ndim != 1:
        return event.obj(key, arr)
    kind = arr.dtype.kind
    if kind == "b":
        return event.bools(key, arr.tolist())
    if kind == "i":
        return event.ints(key, arr.tolist())
    if kind == "u":
        return event.uints(key, arr.tolist())
    if kind == "f":
        if arr.dtype.itemsize == 4:
            return event.floats32(key, arr.tolist())
        return event.floats64(key, arr.tolist())
    if kind == "m":
        return event.durs(key, arr.astype("timedelta64[ns]").astype(np.int64).tolist())
    if kind == "U":
        return event.strs(key, arr.tolist())
    return event.obj(key, arr)


__all__ = ["append_ndarray"]
