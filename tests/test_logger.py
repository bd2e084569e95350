import inspect
import sys
from types import SimpleNamespace

import pytest

from hotlog import DISABLED, ConfigError, Level, Logger
from hotlog.event import caller_field

from conftest import FIXED_TS

LEVELS = list(Level)


@pytest.mark.parametrize("minimum", LEVELS)
@pytest.mark.parametrize("level", LEVELS[:-1])
def test_gate_matches_level_order(make_logger, sink, minimum, level):
    log = make_logger(level=minimum)
    event = log.with_level(level)
    assert (event is DISABLED) == (level < minimum)
    assert log.enabled(level) == (level >= minimum)
    event.send()
    assert len(sink.writes) == (0 if level < minimum else 1)


def test_fatal_is_gated_like_other_levels(make_logger):
    exits = []
    log = make_logger(level=Level.FATAL, exit=exits.append)
    assert log.error() is DISABLED
    assert log.fatal() is not DISABLED
    log.fatal().send()
    assert exits == [255]


@pytest.mark.parametrize("level", [99, -1, 5])
def test_unknown_levels_are_disabled(log, sink, level):
    assert log.with_level(level) is DISABLED
    assert not log.enabled(level)
    log.with_level(level).msg("x")
    assert sink.writes == []


def test_warn_minimum_drops_debug_and_info(make_logger, sink):
    log = make_logger(level="warn")
    log.debug().string("a", "b").msg("no")
    log.info().msg("no")
    log.warn().msg("yes")
    assert [r["message"] for r in sink.records()] == ["yes"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("debug", Level.DEBUG),
        ("INFO", Level.INFO),
        (" warn ", Level.WARN),
        ("warning", Level.WARN),
        ("Error", Level.ERROR),
        ("fatal", Level.FATAL),
        (3, Level.ERROR),
        (Level.INFO, Level.INFO),
    ],
)
def test_level_parse(value, expected):
    assert Level.parse(value) is expected


@pytest.mark.parametrize("value", ["verbose", "", 7, -1, True, 1.0, None])
def test_level_parse_rejects(value):
    with pytest.raises(ConfigError):
        Level.parse(value)


def test_config_errors():
    with pytest.raises(ConfigError):
        Logger(level="loud")
    with pytest.raises(ConfigError):
        Logger(writer=object())
    with pytest.raises(ConfigError):
        Logger(time_field=3)
    with pytest.raises(ValueError):
        Logger(level="loud")


def test_logger_is_immutable(log):
    with pytest.raises(AttributeError):
        log.level = Level.ERROR


def test_level_string_is_coerced(make_logger):
    assert make_logger(level="error").level is Level.ERROR


def test_fields_keep_call_order(log, sink):
    log.info().integer("z", 1).integer("a", 2).integer("m", 3).send()
    line = sink.lines()[0]
    assert line.index('"z"') < line.index('"a"') < line.index('"m"')
    assert line.startswith('{"time":' + FIXED_TS + ',"level":"info"')
    assert line.endswith("}\n")


def test_custom_time_field(make_logger, sink):
    log = make_logger(time_field="ts")
    log.info().send()
    assert sink.lines() == ['{"ts":' + FIXED_TS + ',"level":"info"}\n']


def test_custom_time_field_is_escaped(make_logger, sink):
    log = make_logger(time_field="<t>", escape_html=True)
    log.info().send()
    assert sink.lines()[0].startswith('{"\\u003ct\\u003e":')


def test_custom_time_format_is_escaped(make_logger, sink):
    log = make_logger(time_format='%H"%M')
    log.info().send()
    assert sink.lines() == ['{"time":"12\\"00","level":"info"}\n']


def test_default_clock_is_utc(sink, pool):
    log = Logger(writer=sink, pool=pool)
    log.info().send()
    assert sink.records()[0]["time"].endswith("Z")


@pytest.mark.parametrize("method", ["debug", "info", "warn", "error", "with_level"])
def test_caller_points_at_call_site(make_logger, sink, method):
    log = make_logger(caller=True)
    open_event = getattr(log, method)
    args = (Level.ERROR,) if method == "with_level" else ()
    line = inspect.currentframe().f_lineno; open_event(*args).send()  # noqa: E702
    rec = sink.records()[0]
    assert rec["caller"] == f"test_logger.py:{line}"
    assert list(rec) == ["time", "level", "caller"]


def test_unreachable_caller_frame():
    assert caller_field(10**6) == b',"caller":"???:1"'


@pytest.mark.parametrize("lineno", [-5, None])
def test_caller_line_is_clamped(monkeypatch, lineno):
    fake = SimpleNamespace(f_code=SimpleNamespace(co_filename="/src/app/main.py"), f_lineno=lineno)
    monkeypatch.setattr(sys, "_getframe", lambda depth=0: fake)
    out = caller_field(0)
    monkeypatch.undo()
    assert out == b',"caller":"main.py:0"'


def test_writer_errors_propagate_and_release_event(make_logger, pool):
    class Broken:
        def write(self, data):
            raise OSError("disk full")

    log = make_logger(writer=Broken())
    with pytest.raises(OSError):
        log.info().msg("x")
    assert len(pool) == 1
