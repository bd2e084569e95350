"""Command-line interface for writing a single record."""

from __future__ import annotations

import argparse
import sys
import traceback
from datetime import timedelta
from typing import Any, Callable, List, Optional, Tuple

from .exceptions import ConfigError, HotlogError, InputError
from .level import Level
from .logger import Logger
from .sinks import StreamSink

EXAMPLE = (
    'hotlog --level info --str user=ann --int retries=3 --msg "login ok"\n'
    'hotlog --min-level warn --level debug --str x=y --msg ignored\n'
    "hotlog --level error --caller --raw 'ctx={\"id\":7}' --dur elapsed=1.5 --send\n"
)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

FieldArg = Tuple[str, str, str]


def _field(kind: str) -> Callable[[str], FieldArg]:
    def parse(text: str) -> FieldArg:
        key, sep, value = text.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
        return kind, key, value

    return parse


def _convert(field: FieldArg) -> Tuple[str, str, Any]:
    """Return the event method name, key and typed value for one field."""
    kind, key, raw = field
    try:
        if kind == "str":
            return "string", key, raw
        if kind == "int":
            return "integer", key, int(raw)
        if kind == "float":
            return "float64", key, float(raw)
        if kind == "dur":
            return "dur", key, timedelta(seconds=float(raw))
        if kind == "raw":
            return "raw_json", key, raw
    except (ValueError, OverflowError) as exc:
        raise InputError(f"invalid {kind} value for {key!r}: {raw!r}") from exc
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return "boolean", key, True
    if lowered in _FALSE:
        return "boolean", key, False
    raise InputError(f"invalid bool value for {key!r}: {raw!r}")


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``hotlog`` command."""
    p = argparse.ArgumentParser(
        prog="hotlog",
        description="Write one structured JSON log record",
        epilog="Examples:\n" + "".join("  " + line + "\n" for line in EXAMPLE.splitlines()),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    p.add_argument("--verbose", action="store_true", help="Show full tracebacks")
    p.add_argument(
        "--example",
        action="store_true",
        help="Print sample invocations to stdout and exit",
    )
    p.add_argument("--level", default="info", help="Level of the record (default: info)")
    p.add_argument(
        "--min-level",
        default="debug",
        help="Minimum level that is written (default: debug)",
    )
    p.add_argument("--caller", action="store_true", help="Add the caller field")
    p.add_argument("--escape-html", action="store_true", help="Escape <, > and & in strings")
    p.add_argument("--time-field", default="", help="Key of the time field")
    p.add_argument("--time-format", default="", help="strftime pattern for the time field")
    p.add_argument("--stderr", action="store_true", help="Write to stderr instead of stdout")
    p.add_argument("--timestamp", action="store_true", help="Add a Unix timestamp field")

    # Every field option shares one destination so command-line order is kept.
    for kind, meta, text in (
        ("str", "KEY=TEXT", "string field"),
        ("int", "KEY=INT", "integer field"),
        ("float", "KEY=FLOAT", "float field"),
        ("bool", "KEY=BOOL", "boolean field (true/false/1/0)"),
        ("dur", "KEY=SECONDS", "duration field"),
        ("raw", "KEY=JSON", "pre-encoded JSON field, not validated"),
    ):
        p.add_argument(
            f"--{kind}",
            dest="fields",
            action="append",
            type=_field(kind),
            metavar=meta,
            help=text,
        )

    end = p.add_mutually_exclusive_group()
    end.add_argument("--msg", default=None, help="Message text")
    end.add_argument("--send", action="store_true", help="Finish the record without a message")
    return p


def main(argv: Optional[List[str]] = None, stream: Any = None) -> int:
    """Entry point for the ``hotlog`` command-line tool.

    Args:
        argv: Optional argument list for testing.
        stream: Optional binary stream overriding stdout/stderr.

    Returns:
        ``0`` on success, ``64`` for invalid input or options and ``70`` for
        other failures.
    """
    p = build_parser()
    args = p.parse_args(argv)

    if args.example:
        sys.stdout.write(EXAMPLE)
        return 0

    try:
        if stream is None:
            stream = sys.stderr.buffer if args.stderr else sys.stdout.buffer
        logger = Logger(
            level=args.min_level,
            caller=args.caller,
            escape_html=args.escape_html,
            time_field=args.time_field,
            time_format=args.time_format,
            writer=StreamSink(stream, flush=True),
        )
        level = Level.parse(args.level)
        fields = [_convert(f) for f in args.fields or []]

        event = logger.with_level(level)
        if args.timestamp:
            event.timestamp()
        for method, key, value in fields:
            getattr(event, method)(key, value)
        if args.msg is None:
            event.send()
        else:
            event.msg(args.msg)
        return 0

    except (ConfigError, InputError) as exc:
        if args.verbose:
            traceback.print_exc()
        else:
            sys.stderr.write(f"error: {exc}\n")
        return 64
    except HotlogError as exc:
        if args.verbose:
            traceback.print_exc()
        else:
            sys.stderr.write(f"internal error: {exc}\n")
        return 70
    except Exception as exc:  # pragma: no cover - unexpected
        if args.verbose:
            traceback.print_exc()
        else:
            sys.stderr.write(f"internal error: {exc}\n")
        return 70


if __name__ == "__main__":
    sys.exit(main())
