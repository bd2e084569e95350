import random
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from hotlog.timefmt import append_time, format_time

UTC = timezone.utc


def reference(t):
    naive = t.astimezone(UTC).replace(tzinfo=None) if t.tzinfo else t
    return naive.isoformat(timespec="milliseconds") + "Z"


@pytest.mark.parametrize(
    "t, expected",
    [
        (datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=UTC), "2024-05-01T12:00:00.123Z"),
        (datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=UTC), "2024-02-29T23:59:59.999Z"),
        (datetime(2000, 2, 29, 0, 0, 0, 0, tzinfo=UTC), "2000-02-29T00:00:00.000Z"),
        (datetime(1000, 1, 1, 0, 0, 0, 999, tzinfo=UTC), "1000-01-01T00:00:00.000Z"),
        (datetime(9999, 12, 31, 23, 59, 59, 999000, tzinfo=UTC), "9999-12-31T23:59:59.999Z"),
        (datetime(1970, 1, 1, 0, 0, 0, 1000), "1970-01-01T00:00:00.001Z"),
    ],
)
def test_known_timestamps(t, expected):
    assert format_time(t) == expected


def test_output_is_fixed_width_and_quoted():
    buf = bytearray(b"prefix")
    append_time(buf, datetime(2024, 5, 1, tzinfo=UTC))
    assert buf[:6] == b"prefix"
    assert len(buf) - 6 == 26
    assert buf[6:7] == b'"' and buf[-1:] == b'"'


def test_aware_times_are_normalized_to_utc():
    plus_two = timezone(timedelta(hours=2))
    t = datetime(2024, 1, 1, 1, 30, 0, 500000, tzinfo=plus_two)
    assert format_time(t) == "2023-12-31T23:30:00.500Z"


def test_sub_millisecond_precision_is_truncated():
    t = datetime(2021, 6, 30, 23, 59, 59, 999999, tzinfo=UTC)
    assert format_time(t).endswith("59.999Z")
    assert format_time(t.replace(microsecond=1999)).endswith("59.001Z")


def test_matches_isoformat_across_years_1000_to_9999():
    rnd = random.Random(7)
    lo = datetime(1000, 1, 1)
    span = (datetime(9999, 12, 31, 23, 59, 59, 999999) - lo) // timedelta(microseconds=1)
    for _ in range(3000):
        t = lo + timedelta(microseconds=rnd.randrange(span))
        assert format_time(t) == reference(t)


def test_matches_numpy_datetime_strings():
    rnd = random.Random(11)
    lo = datetime(1970, 1, 1)
    span = (datetime(9999, 1, 1) - lo) // timedelta(microseconds=1)
    for _ in range(1000):
        t = lo + timedelta(microseconds=rnd.randrange(span))
        expected = np.datetime_as_string(np.datetime64(t, "ms"), unit="ms") + "Z"
        assert format_time(t) == expected
