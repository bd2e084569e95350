"""Stack dumps written before a fatal record terminates the process."""

from __future__ import annotations

import sys
import threading
import traceback
from types import FrameType
from typing import List

CURRENT_THREAD_LIMIT = 10_000
ALL_THREADS_LIMIT = 100_000
CAPTURE_ATTEMPTS = 5


def _format_thread(ident: int, name: str, frame: FrameType) -> str:
    return f"thread {ident} [{name}]:\n" + "".join(traceback.format_stack(frame))


def _render_all() -> str:
    names = {t.ident: t.name for t in threading.enumerate()}
    parts: List[str] = []
    for ident, frame in sys._current_frames().items():
        parts.append(_format_thread(ident, names.get(ident, "?"), frame))
    return "\n".join(parts)


def capture(trace: bytes, limit: int, attempts: int = CAPTURE_ATTEMPTS) -> bytes:
    """Bound ``trace`` by a capture buffer that grows on overflow.

    The buffer starts at ``limit`` bytes and doubles after each attempt the
    trace does not fit in, up to ``attempts`` tries. If it never fits, the
    trace is truncated to the last buffer size.

    Args:
        trace: Full trace text.
        limit: Initial buffer size in bytes.
        attempts: Number of sizes to try.

    Returns:
        The trace, possibly truncated.
    """
    size = limit
    for _ in range(attempts):
        if len(trace) < size:
            return trace
        size *= 2
    return trace[: size // 2]


def stacks(all_threads: bool) -> bytes:
    """Return a text dump of the calling thread's stack or of every thread."""
    if all_threads:
        text = _render_all()
        limit = ALL_THREADS_LIMIT
    else:
        thread = threading.current_thread()
        text = _format_thread(threading.get_ident(), thread.name, sys._getframe(1))
        limit = CURRENT_THREAD_LIMIT
    return capture(text.encode("utf-8", "backslashreplace"), limit)


__all__ = ["capture", "stacks"]
