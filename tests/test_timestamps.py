from datetime import datetime, timedelta, timezone

import pytest

from promcommon.timestamps import (
    EARLIEST,
    LATEST,
    Duration,
    Interval,
    Time,
    parse_duration,
)

SECOND_NS = 1_000_000_000
MINUTE_NS = 60 * SECOND_NS
HOUR_NS = 60 * MINUTE_NS
DAY_NS = 24 * HOUR_NS

DURATION_CASES = [
    ("0", 0, "0s"),
    ("0w", 0, "0s"),
    ("0s", 0, None),
    ("324ms", 324 * 1_000_000, None),
    ("3s", 3 * SECOND_NS, None),
    ("5m", 5 * MINUTE_NS, None),
    ("1h", HOUR_NS, None),
    ("4d", 4 * DAY_NS, None),
    ("4d1h", 4 * DAY_NS + HOUR_NS, None),
    ("14d", 14 * DAY_NS, "2w"),
    ("3w", 21 * DAY_NS, None),
    ("3w2d1h", 23 * DAY_NS + HOUR_NS, "23d1h"),
    ("10y", 3650 * DAY_NS, None),
]


def test_comparators():
    t1a = Time.from_unix(0)
    t1b = Time.from_unix(0)
    t2 = Time.from_unix(2 * 1000 - 1)
    assert t1a == t1b
    assert t1a != t2
    assert t1a < t2
    assert not t1a < t1b
    assert t2 > t1a
    assert not t1b > t1a


def test_time_conversions():
    unix_secs = 1136239445
    unix_nsecs = 123456789
    unix_nano = unix_secs * SECOND_NS + unix_nsecs
    expected = datetime.fromtimestamp(unix_secs, timezone.utc) + timedelta(
        microseconds=123000
    )
    ts = Time.from_unix_nano(unix_nano)
    assert ts.to_datetime() == expected
    assert ts.unix_nano() == unix_nano - unix_nano % 1_000_000
    assert ts.unix() == unix_secs


def test_time_add_and_sub():
    duration = timedelta(hours=1, minutes=1, seconds=1)
    go_time = datetime.fromtimestamp(1136239445, timezone.utc)
    ts = Time.from_unix(1136239445)
    assert ts.add(duration).to_datetime() == go_time + duration
    earlier = ts.add(-duration)
    delta = ts.sub(earlier)
    assert delta.to_timedelta() == duration
    assert delta == Duration(duration)


def test_add_truncates_below_millisecond():
    assert Time(10).add(1_999_999) == Time(11)
    assert Time(10).add(-1_999_999) == Time(9)


@pytest.mark.parametrize("text,nanos,expected", DURATION_CASES)
def test_parse_duration(text, nanos, expected):
    d = parse_duration(text)
    assert int(d) == nanos
    assert str(d) == (expected or text)


@pytest.mark.parametrize("text,nanos,expected", DURATION_CASES)
def test_duration_json_round_trip(text, nanos, expected):
    d = Duration.from_json(f'"{text}"')
    assert int(d) == nanos
    assert d.to_json() == f'"{expected or text}"'


def test_duration_json_large():
    d = Duration.from_json('"289y"')
    assert int(d) == 289 * 365 * DAY_NS
    assert d.to_json() == '"289y"'


def test_duration_from_json_requires_string():
    with pytest.raises(ValueError):
        Duration.from_json("5")


@pytest.mark.parametrize(
    "text",
    ["1", "1y1m1d", "-1w", "1.5d", "d", "294y", "200y10400w", "107675d", "2584200h", ""],
)
def test_parse_bad_duration(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parse_duration_unknown_unit_message():
    with pytest.raises(ValueError, match="unknown unit"):
        parse_duration("5x")


@pytest.mark.parametrize("value,text", [(Time(1), "0.001"), (Time(-1), "-0.001")])
def test_time_json(value, text):
    assert value.to_json() == text
    assert Time.from_json(text) == value


@pytest.mark.parametrize(
    "text,value",
    [
        ("1234.567", 1234567),
        ("1234", 1234000),
        ("1.23456", 1234),
        ("1.5", 1500),
        ("-0.1", -100),
        (b"2.", 2000),
    ],
)
def test_time_from_json(text, value):
    assert Time.from_json(text) == value


@pytest.mark.parametrize("text", ["1.2.3", "abc", "1.x"])
def test_time_from_json_invalid(text):
    with pytest.raises(ValueError):
        Time.from_json(text)


def test_time_str():
    assert str(Time(1136239445000)) == "1136239445"
    assert str(Time(1234567)) == "1234.567"


def test_duration_to_timedelta():
    assert parse_duration("1h30m").to_timedelta() == timedelta(hours=1, minutes=30)


def test_earliest_latest_and_interval():
    assert EARLIEST < Time(0) < LATEST
    interval = Interval(Time(1), Time(2))
    assert interval.end.sub(interval.start) == 1_000_000