import json
import threading
from datetime import datetime, timezone

import pytest

from hotlog import EventPool, Logger

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
FIXED_TS = '"2024-05-01T12:00:00.123Z"'


class MemorySink:
    """Sink that keeps a copy of every write."""

    def __init__(self):
        self.writes = []
        self._lock = threading.Lock()

    def write(self, data):
        with self._lock:
            self.writes.append(bytes(data))
        return len(data)

    @property
    def text(self):
        return b"".join(self.writes).decode("utf-8")

    def lines(self):
        return [w.decode("utf-8") for w in self.writes]

    def records(self):
        return [json.loads(w) for w in self.writes]


@pytest.fixture()
def sink():
    return MemorySink()


@pytest.fixture()
def pool():
    return EventPool()


@pytest.fixture()
def make_logger(sink, pool):
    def factory(**kwargs):
        kwargs.setdefault("writer", sink)
        kwargs.setdefault("clock", lambda: FIXED_NOW)
        kwargs.setdefault("pool", pool)
        return Logger(**kwargs)

    return factory


@pytest.fixture()
def log(make_logger):
    return make_logger()
