"""Helpers for profiling log calls with cProfile and tracemalloc."""

from __future__ import annotations

import cProfile
import pstats
import tracemalloc
from dataclasses import dataclass
from io import StringIO
from types import TracebackType
from typing import Optional


@dataclass
class ProfileReport:
    """cProfile statistics gathered around a batch of log calls."""

    profile: cProfile.Profile

    def to_text(self, lines: int = 20, sort: str = "tottime", only: Optional[str] = "hotlog") -> str:
        """Return a formatted statistics table.

        Args:
            lines: Maximum number of rows.
            sort: ``pstats`` sort key.
            only: Regular expression the ``file:line(function)`` column must
                match; ``None`` keeps every row. The default keeps the
                encoder's own functions.

        Returns:
            Human readable text report.
        """
        buffer = StringIO()
        stats = pstats.Stats(self.profile, stream=buffer).sort_stats(sort)
        restrictions = (only, lines) if only else (lines,)
        stats.print_stats(*restrictions)
        return buffer.getvalue()

    def calls(self, function: str) -> int:
        """Return the total call count of every profiled function named ``function``."""
        # pstats keys are (file, line, function); values start (cc, nc, ...)
        table = pstats.Stats(self.profile).stats  # type: ignore[attr-defined]
        return sum(entry[1] for key, entry in table.items() if key[2] == function)


class ProfileSession:
    """Record the log calls made inside a ``with`` block using :mod:`cProfile`.

    Args:
        dump_path: Optional path the raw statistics are written to on exit,
            for ``snakeviz`` or ``pstats`` later.
    """

    def __init__(self, dump_path: Optional[str] = None) -> None:
        self.dump_path = dump_path
        self._prof = cProfile.Profile()
        self._done = False

    def __enter__(self) -> "ProfileSession":
        self._prof.enable()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self._prof.disable()
        self._done = True
        if self.dump_path:
            self._prof.dump_stats(self.dump_path)

    def report(self) -> ProfileReport:
        """Return the statistics of the finished session.

        Raises:
            RuntimeError: If the ``with`` block has not exited yet.
        """
        if not self._done:
            raise RuntimeError("profiling session still running")
        return ProfileReport(self._prof)


class AllocationSession:
    """Context manager measuring Python heap usage with :mod:`tracemalloc`.

    ``net_bytes`` is what the block left allocated, ``peak_bytes`` the high
    water mark above the starting point. A steady stream of pooled log calls
    should leave ``net_bytes`` close to zero.

    Starting tracing inside a session that is already traced is supported;
    the outer tracer is left running.
    """

    def __init__(self) -> None:
        self.net_bytes = 0
        self.peak_bytes = 0
        self._start = 0
        self._owner = False

    def __enter__(self) -> "AllocationSession":
        self._owner = not tracemalloc.is_tracing()
        if self._owner:
            tracemalloc.start()
        tracemalloc.reset_peak()
        self._start = tracemalloc.get_traced_memory()[0]
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        current, peak = tracemalloc.get_traced_memory()
        if self._owner:
            tracemalloc.stop()
        self.net_bytes = current - self._start
        self.peak_bytes = max(0, peak - self._start)

    @property
    def peak_mib(self) -> float:
        """Peak usage in MiB."""
        return self.peak_bytes / (1024 * 1024)


__all__: list[str] = ["AllocationSession", "ProfileReport", "ProfileSession"]
