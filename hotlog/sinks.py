"""Byte sinks that receive finished records."""

from __future__ import annotations

import sys
import threading
from typing import BinaryIO, Optional, Protocol


class Sink(Protocol):
    """Destination for finished records.

    Each record arrives in a single ``write`` call. Concurrent callers may
    write at the same time, so a sink shared between threads must keep each
    call uninterrupted.

    ``data`` is the event's own buffer and is reused once ``write`` returns;
    a sink that keeps it must copy it.
    """

    def write(self, data: bytes) -> Optional[int]:
        """Write ``data`` and return the number of bytes written."""
        ...


class StreamSink:
    """Sink over a binary stream that serializes writes with a lock."""

    def __init__(self, stream: BinaryIO, flush: bool = False) -> None:
        """Initialize the sink.

        Args:
            stream: Binary stream such as ``sys.stderr.buffer`` or an open
                file.
            flush: Flush the stream after every record.
        """
        self.stream = stream
        self.autoflush = flush
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        """Write one record to the stream."""
        with self._lock:
            n = self.stream.write(data)
            if self.autoflush:
                self.stream.flush()
        return len(data) if n is None else n

    def flush(self) -> None:
        """Flush the underlying stream."""
        with self._lock:
            self.stream.flush()


def stderr_sink() -> StreamSink:
    """Return a flushing sink over the process's standard error."""
    return StreamSink(sys.stderr.buffer, flush=True)


def stdout_sink() -> StreamSink:
    """Return a flushing sink over the process's standard output."""
    return StreamSink(sys.stdout.buffer, flush=True)


__all__ = ["Sink", "StreamSink", "stderr_sink", "stdout_sink"]
