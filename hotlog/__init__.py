"""Public package exports for :mod:`hotlog`."""

from __future__ import annotations

from .escape import append_bytes, append_string, escape_string
from .event import DISABLED, FATAL_EXIT_CODE, Event, NoopEvent
from .exceptions import ConfigError, HotlogError, InputError, PoolError
from .level import Level
from .logger import Logger, marshal_json
from .numfmt import format_duration
from .pool import EventPool
from .sinks import Sink, StreamSink, stderr_sink, stdout_sink
from .timefmt import append_time, format_time

__version__ = "0.1.0"

__all__ = [
    "Logger",
    "Level",
    "Event",
    "NoopEvent",
    "DISABLED",
    "FATAL_EXIT_CODE",
    "EventPool",
    "Sink",
    "StreamSink",
    "stderr_sink",
    "stdout_sink",
    "marshal_json",
    "escape_string",
    "append_string",
    "append_bytes",
    "append_time",
    "format_time",
    "format_duration",
    "HotlogError",
    "ConfigError",
    "InputError",
    "PoolError",
]
