import csv
import json

import pytest

from hotlog import Logger, bench
from hotlog.bench import log_fields, random_fields, reference_line, run_once
from hotlog.profiling import AllocationSession, ProfileSession

from conftest import FIXED_NOW


def test_log_fields_matches_reference(make_logger, sink):
    fields = random_fields(12, seed=3)
    log_fields(make_logger(), fields, "msg")
    assert json.loads(sink.writes[0]) == json.loads(reference_line(fields, "msg", FIXED_NOW))


def test_random_fields_are_deterministic():
    assert random_fields(8, 1) == random_fields(8, 1)
    assert [kind for kind, _, _ in random_fields(4, 0)] == ["str", "int", "float", "bool"]


def test_run_once_has_no_mismatches():
    for escape_html in (False, True):
        res = run_once(6, 50, escape_html=escape_html, seed=2)
        assert res.mismatches == 0
        assert res.hotlog_ns > 0
        assert res.net_bytes is None


def test_run_once_tracks_memory():
    res = run_once(4, 50, track_mem=True)
    assert res.net_bytes is not None
    assert res.peak_mib >= 0


def test_main_writes_csv(tmp_path, capsys):
    out = tmp_path / "bench.csv"
    code = bench.main(["--trials", "2", "--fields", "2", "--iterations", "20", "--out-csv", str(out)])
    assert code == 0
    with out.open() as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == ["fields", "escape_html", "trial", "hotlog_ns", "json_ns", "mismatches"]
    assert len(rows) == 1 + 2 * 2
    assert "hotlog_med" in capsys.readouterr().out


def test_main_log_json(capfd):
    code = bench.main(["--trials", "1", "--fields", "3", "--iterations", "5", "--log-json"])
    assert code == 0
    lines = [json.loads(line) for line in capfd.readouterr().out.splitlines()]
    assert [(r["fields"], r["escape_html"]) for r in lines] == [(3, False), (3, True)]
    assert all(r["message"] == "bench" and r["mismatches"] == 0 for r in lines)


def test_profile_session_report(make_logger):
    log = make_logger()
    with ProfileSession() as prof:
        for _ in range(10):
            log.info().integer("n", 1).send()
    report = prof.report()
    assert "ncalls" in report.to_text(lines=5)
    assert "event.py" in report.to_text(lines=50, only="event")
    assert report.calls("send") == 10


def test_profile_report_requires_finished_session():
    session = ProfileSession()
    with pytest.raises(RuntimeError):
        session.report()


def test_allocation_session_measures_growth():
    keep = []
    with AllocationSession() as mem:
        keep.append(bytearray(100_000))
    assert mem.net_bytes >= 100_000
    assert mem.peak_mib > 0


def test_logger_default_writer_is_stderr(capfd):
    Logger(clock=lambda: FIXED_NOW).info().msg("to stderr")
    assert '"message":"to stderr"' in capfd.readouterr().err
