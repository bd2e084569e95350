"""Free list of reusable :class:`~hotlog.event.Event` builders."""

from __future__ import annotations

import threading
from typing import List

from .event import Event
from .exceptions import PoolError


class EventPool:
    """Thread-safe free list of events.

    ``acquire`` hands an event to exactly one caller; the caller owns it until
    a terminal call passes it back through ``release``. Oversized buffers are
    dropped rather than pooled so one huge record does not pin memory.

    Args:
        max_size: Maximum number of idle events kept.
        max_buffer: Largest buffer length, in bytes, worth keeping.
    """

    def __init__(self, max_size: int = 1024, max_buffer: int = 1 << 16) -> None:
        if max_size < 0:
            raise ValueError("max_size must be non-negative.")
        self.max_size = max_size
        self.max_buffer = max_buffer
        self._free: List[Event] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._free)

    def acquire(self) -> Event:
        """Return an idle event, or a new one when the free list is empty."""
        with self._lock:
            event = self._free.pop() if self._free else None
        if event is None:
            event = Event()
        event.live = True
        return event

    def release(self, event: Event) -> None:
        """Take back an event after its terminal call.

        Raises:
            PoolError: If ``event`` is not currently owned by a caller.
        """
        keep = len(event.buf) <= self.max_buffer
        with self._lock:
            if not event.live:
                raise PoolError("event already released")
            event.live = False
            event.logger = None
            event.write = None
            if keep and len(self._free) < self.max_size:
                self._free.append(event)


__all__ = ["EventPool"]
