"""Micro-benchmark utilities for the encoder.

Run this module as a script to time ``hotlog`` against a ``json.dumps``
reference that builds the same record as a dict.

Example:
```bash
python -m hotlog.bench --trials 5 --fields 4 16 --iterations 20000 --out-csv out.csv
```

Use ``--mem`` to record heap growth and peak usage during the hotlog runs.
"""

from __future__ import annotations

import argparse
import csv
import json
import random
import statistics
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .level import Level
from .logger import Logger
from .profiling import AllocationSession, ProfileSession
from .sinks import stdout_sink

Field = Tuple[str, str, Any]

_FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
_ALPHABET = string.ascii_letters + string.digits + ' "\\<>&\n\t/é'


class _LastLineSink:
    """Sink keeping a copy of the most recent record."""

    def __init__(self) -> None:
        self.last = b""
        self.count = 0

    def write(self, data: bytes) -> int:
        self.last = bytes(data)
        self.count += 1
        return len(data)


@dataclass
class BenchResult:
    """Result of a single benchmarking run."""

    fields: int
    iterations: int
    escape_html: bool
    hotlog_ns: float
    json_ns: float
    mismatches: int
    net_bytes: Optional[int] = None
    peak_mib: Optional[float] = None


def random_fields(n: int, seed: int) -> List[Field]:
    """Return ``n`` deterministic ``(kind, key, value)`` triples."""
    rnd = random.Random(seed)
    kinds = ("str", "int", "float", "bool")
    out: List[Field] = []
    for i in range(n):
        kind = kinds[i % len(kinds)]
        key = f"{kind}_{i}"
        if kind == "str":
            value: Any = "".join(rnd.choice(_ALPHABET) for _ in range(rnd.randrange(4, 40)))
        elif kind == "int":
            value = rnd.randrange(-(10**12), 10**12)
        elif kind == "float":
            value = rnd.uniform(-1e6, 1e6)
        else:
            value = rnd.random() < 0.5
        out.append((kind, key, value))
    return out


def log_fields(logger: Logger, fields: List[Field], message: str) -> None:
    """Write one ``info`` record carrying ``fields``."""
    event = logger.info()
    for kind, key, value in fields:
        if kind == "str":
            event.string(key, value)
        elif kind == "int":
            event.integer(key, value)
        elif kind == "float":
            event.float64(key, value)
        else:
            event.boolean(key, value)
    event.msg(message)


def reference_line(fields: List[Field], message: str, now: datetime = _FIXED_NOW) -> bytes:
    """Return the record ``log_fields`` writes, built with ``json.dumps``."""
    record: Dict[str, Any] = {
        "time": now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z",
        "level": "info",
    }
    for _, key, value in fields:
        record[key] = value
    record["message"] = message
    return (json.dumps(record, separators=(",", ":"), ensure_ascii=False) + "\n").encode("utf-8")


def run_once(
    n_fields: int,
    iterations: int,
    escape_html: bool = False,
    seed: int = 0,
    track_mem: bool = False,
) -> BenchResult:
    """Time ``iterations`` records through hotlog and through the reference.

    Args:
        n_fields: Fields per record.
        iterations: Records written per implementation.
        escape_html: Run the logger in HTML-safe mode.
        seed: Seed for the generated field values.
        track_mem: Measure heap growth of the hotlog loop.

    Returns:
        Per-record timings and the number of records whose decoded JSON
        differs from the reference.
    """
    fields = random_fields(n_fields, seed)
    sink = _LastLineSink()
    logger = Logger(
        level=Level.INFO,
        escape_html=escape_html,
        writer=sink,
        clock=lambda: _FIXED_NOW,
    )
    message = f"bench {n_fields}"

    # Warm the pool and the key cache so the timed loop sees steady state.
    log_fields(logger, fields, message)

    net_bytes: Optional[int] = None
    peak_mib: Optional[float] = None
    if track_mem:
        with AllocationSession() as mem:
            t0 = time.perf_counter()
            for _ in range(iterations):
                log_fields(logger, fields, message)
            t1 = time.perf_counter()
        net_bytes = mem.net_bytes
        peak_mib = mem.peak_mib
    else:
        t0 = time.perf_counter()
        for _ in range(iterations):
            log_fields(logger, fields, message)
        t1 = time.perf_counter()

    expected = reference_line(fields, message)
    t2 = time.perf_counter()
    for _ in range(iterations):
        expected = reference_line(fields, message)
    t3 = time.perf_counter()

    mismatches = 0 if json.loads(sink.last) == json.loads(expected) else 1
    return BenchResult(
        fields=n_fields,
        iterations=iterations,
        escape_html=escape_html,
        hotlog_ns=(t1 - t0) * 1e9 / max(1, iterations),
        json_ns=(t3 - t2) * 1e9 / max(1, iterations),
        mismatches=mismatches,
        net_bytes=net_bytes,
        peak_mib=peak_mib,
    )


def _p95(values: List[float]) -> float:
    if len(values) > 1:
        return statistics.quantiles(values, n=100, method="inclusive")[94]
    return values[0]


def main(argv: List[str] | None = None) -> int:
    """Run benchmarking trials and optionally record results.

    Args:
        argv: Optional argument list for testing.

    Returns:
        ``0`` when every record matched the reference, ``1`` otherwise.
    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--trials", type=int, default=3, help="Number of trials per configuration")
    parser.add_argument(
        "--fields",
        type=int,
        nargs="+",
        default=[4, 16],
        help="Field counts per record to benchmark",
    )
    parser.add_argument("--iterations", type=int, default=2000, help="Records per trial")
    parser.add_argument("--seed-base", type=int, default=0, help="Base seed for field values")
    parser.add_argument("--out-csv", type=Path, help="Optional path to write per-trial CSV data")
    parser.add_argument("--mem", action="store_true", help="Track heap growth with tracemalloc")
    parser.add_argument("--profile", action="store_true", help="Print a cProfile report")
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit one hotlog record per configuration instead of a table",
    )
    args = parser.parse_args(argv)

    rows: List[List[object]] = []
    aggregates: Dict[Tuple[int, bool], List[BenchResult]] = {}
    profile = ProfileSession() if args.profile else None

    def trials() -> None:
        for n_fields in args.fields:
            for escape_html in (False, True):
                results = aggregates.setdefault((n_fields, escape_html), [])
                for trial in range(args.trials):
                    res = run_once(
                        n_fields,
                        args.iterations,
                        escape_html=escape_html,
                        seed=args.seed_base + trial,
                        track_mem=args.mem,
                    )
                    results.append(res)
                    row: List[object] = [
                        n_fields,
                        int(escape_html),
                        trial,
                        f"{res.hotlog_ns:.1f}",
                        f"{res.json_ns:.1f}",
                        res.mismatches,
                    ]
                    if args.mem:
                        row.append(res.net_bytes)
                    rows.append(row)

    if profile is not None:
        with profile:
            trials()
    else:
        trials()

    if args.out_csv:
        with args.out_csv.open("w", newline="") as fh:
            writer = csv.writer(fh)
            header = ["fields", "escape_html", "trial", "hotlog_ns", "json_ns", "mismatches"]
            if args.mem:
                header.append("net_bytes")
            writer.writerow(header)
            writer.writerows(rows)

    report = Logger(level=Level.INFO, writer=stdout_sink())
    if not args.log_json:
        print(
            f"{'fields':>6} {'html':>4} {'hotlog_med':>11} {'hotlog_p95':>11}"
            f" {'json_med':>11} {'json_p95':>11} {'bad':>4}"
        )
    failed = 0
    for (n_fields, escape_html), results in aggregates.items():
        h = [r.hotlog_ns for r in results]
        j = [r.json_ns for r in results]
        bad = sum(r.mismatches for r in results)
        failed += bad
        if args.log_json:
            report.info().integer("fields", n_fields).boolean("escape_html", escape_html).float64(
                "hotlog_ns_med", round(statistics.median(h), 1)
            ).float64("json_ns_med", round(statistics.median(j), 1)).integer(
                "mismatches", bad
            ).msg("bench")
        else:
            print(
                f"{n_fields:6d} {int(escape_html):4d}"
                f" {statistics.median(h):11.1f} {_p95(h):11.1f}"
                f" {statistics.median(j):11.1f} {_p95(j):11.1f} {bad:4d}"
            )
    if profile is not None:
        print(profile.report().to_text(lines=25))
    return 1 if failed else 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
