import threading

import pytest

from hotlog import FATAL_EXIT_CODE
from hotlog.stacks import ALL_THREADS_LIMIT, CURRENT_THREAD_LIMIT, capture, stacks


class FlushingSink:
    def __init__(self):
        self.writes = []
        self.flushed = 0

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)

    def flush(self):
        self.flushed += 1


def test_fatal_writes_record_then_stacks_then_exits(make_logger):
    sink = FlushingSink()
    exits = []
    log = make_logger(writer=sink, exit=exits.append)
    log.fatal().string("why", "disk").msg("giving up")

    assert exits == [FATAL_EXIT_CODE] == [255]
    assert len(sink.writes) == 3
    record, current, every = sink.writes
    assert record.endswith(b',"level":"fatal","why":"disk","message":"giving up"}\n')
    assert b"test_fatal_writes_record_then_stacks_then_exits" in current
    assert current.startswith(b"thread ")
    assert every.startswith(b"thread ")
    assert sink.flushed == 1


def test_fatal_without_flush_method(make_logger, sink):
    exits = []
    log = make_logger(exit=exits.append)
    log.fatal().send()
    assert exits == [255]
    assert len(sink.writes) == 3


def test_fatal_returns_event_to_pool(make_logger, pool):
    log = make_logger(exit=lambda code: None)
    log.fatal().send()
    assert len(pool) == 1


def test_gated_fatal_does_not_exit(make_logger):
    exits = []
    log = make_logger(level="fatal", exit=exits.append)
    log.error().msg("not fatal")
    assert exits == []


def test_exit_exception_propagates_and_event_is_released(make_logger, pool):
    def stop(code):
        raise SystemExit(code)

    log = make_logger(exit=stop)
    with pytest.raises(SystemExit) as info:
        log.fatal().msg("bye")
    assert info.value.code == 255
    assert len(pool) == 1
    event = pool.acquire()
    assert event.live and event.logger is None
    pool.release(event)


def test_all_thread_dump_includes_other_threads():
    ready = threading.Event()
    done = threading.Event()

    def park():
        ready.set()
        done.wait(5)

    t = threading.Thread(target=park, name="parked-worker")
    t.start()
    ready.wait(5)
    try:
        dump = stacks(True)
    finally:
        done.set()
        t.join()
    assert b"[parked-worker]" in dump
    assert b"park" in dump


def test_current_thread_dump_names_caller():
    dump = stacks(False)
    assert b"test_current_thread_dump_names_caller" in dump


@pytest.mark.parametrize(
    "size, limit, attempts, expected",
    [
        (10, 100, 5, 10),
        (150, 100, 5, 150),
        (1599, 100, 5, 1599),
        (1600, 100, 5, 1600),
        (5000, 100, 5, 1600),
        (99, 100, 1, 99),
        (100, 100, 1, 100),
    ],
)
def test_capture_grows_then_truncates(size, limit, attempts, expected):
    trace = b"x" * size
    assert len(capture(trace, limit, attempts)) == expected


def test_default_capture_limits():
    assert CURRENT_THREAD_LIMIT == 10_000
    assert ALL_THREADS_LIMIT == 100_000
    assert len(capture(b"y" * 10**6, CURRENT_THREAD_LIMIT)) == 160_000
