"""Millisecond timestamps and the duration syntax used in configuration."""

from __future__ import annotations

import json
import math
import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

_NANOS_PER_MILLI = 1_000_000
_MILLIS_PER_SECOND = 1_000
_DOT_PRECISION = 3

_NANOSECOND = 1
_MILLISECOND = 1_000_000
_SECOND = 1_000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_YEAR = 365 * _DAY

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_UINT64_MAX = (1 << 64) - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_SIGNED_INT_RE = re.compile(r"[+-]?[0-9]+")

# Units must appear from biggest to smallest, so "1m1d" is rejected.
_UNITS = {
    "ms": (7, _MILLISECOND),
    "s": (6, _SECOND),
    "m": (5, _MINUTE),
    "h": (4, _HOUR),
    "d": (3, _DAY),
    "w": (2, _WEEK),
    "y": (1, _YEAR),
}


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


def _format_float(x: float) -> str:
    """Shortest decimal form of a float, without an exponent."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "+Inf" if x > 0 else "-Inf"
    if x == 0:
        return "-0" if math.copysign(1.0, x) < 0 else "0"
    return format(Decimal(repr(x)).normalize(), "f")


def _to_nanos(duration: int | timedelta) -> int:
    if isinstance(duration, timedelta):
        return duration // timedelta(microseconds=1) * 1000
    return int(duration)


def _parse_int(text: str, bits: int) -> int:
    if not _SIGNED_INT_RE.fullmatch(text):
        raise ValueError(f"invalid syntax: {json.dumps(text)}")
    value = int(text, 10)
    if not -(1 << (bits - 1)) <= value <= (1 << (bits - 1)) - 1:
        raise ValueError(f"value out of range: {json.dumps(text)}")
    return value


class Duration(int):
    """A span of time in nanoseconds with the y/w/d/h/m/s/ms text syntax."""

    def __new__(cls, value: int | timedelta = 0) -> Duration:
        return super().__new__(cls, _to_nanos(value))

    def __repr__(self) -> str:
        return f"Duration({str(self)!r})"

    def __str__(self) -> str:
        ms = _trunc_div(int(self), _MILLISECOND)
        if ms == 0:
            return "0s"
        parts = []
        steps = (
            ("y", 1000 * 60 * 60 * 24 * 365, True),
            ("w", 1000 * 60 * 60 * 24 * 7, True),
            ("d", 1000 * 60 * 60 * 24, False),
            ("h", 1000 * 60 * 60, False),
            ("m", 1000 * 60, False),
            ("s", 1000, False),
            ("ms", 1, False),
        )
        # Years and weeks only when exact: "90d" reads better than "12w6d".
        for unit, mult, exact in steps:
            if exact and ms % mult != 0:
                continue
            value = _trunc_div(ms, mult)
            if value > 0:
                parts.append(f"{value}{unit}")
                ms -= value * mult
        return "".join(parts)

    def to_timedelta(self) -> timedelta:
        """Return the duration as a timedelta, truncated to microseconds."""
        return timedelta(microseconds=int(self) // 1000)

    def to_json(self) -> str:
        """Encode as a JSON string in duration syntax."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> Duration:
        """Decode a JSON string holding a duration."""
        value = json.loads(text)
        if not isinstance(value, str):
            raise ValueError("duration must be a JSON string")
        return parse_duration(value)


def parse_duration(s: str) -> Duration:
    """Parse a duration; a year is always 365d, a week 7d, a day 24h."""
    if s == "0":
        return Duration(0)
    if s == "":
        raise ValueError("empty duration string")

    invalid = f"not a valid duration string: {json.dumps(s)}"
    total = 0
    last_pos = 0
    rest = s
    while rest:
        if not ("0" <= rest[0] <= "9"):
            raise ValueError(invalid)
        i = 0
        while i < len(rest) and "0" <= rest[i] <= "9":
            i += 1
        value = int(rest[:i])
        if value > _UINT64_MAX:
            raise ValueError(invalid)
        rest = rest[i:]

        i = 0
        while i < len(rest) and not ("0" <= rest[i] <= "9"):
            i += 1
        if i == 0:
            raise ValueError(invalid)
        unit_text, rest = rest[:i], rest[i:]
        unit = _UNITS.get(unit_text)
        if unit is None:
            raise ValueError(
                f"unknown unit {json.dumps(unit_text)} in duration {json.dumps(s)}"
            )
        pos, mult = unit
        if pos <= last_pos:
            raise ValueError(invalid)
        last_pos = pos
        if value > (1 << 63) // mult:
            raise ValueError("duration out of range")
        total += value * mult
        if total > _INT64_MAX:
            raise ValueError("duration out of range")
    return Duration(total)


class Time(int):
    """Milliseconds since the Unix epoch, leap seconds excluded."""

    def __repr__(self) -> str:
        return f"Time({int(self)})"

    @classmethod
    def now(cls) -> Time:
        """Return the current time."""
        return cls.from_unix_nano(time.time_ns())

    @classmethod
    def from_unix(cls, seconds: int) -> Time:
        """Time from Unix seconds."""
        return cls(int(seconds) * _MILLIS_PER_SECOND)

    @classmethod
    def from_unix_nano(cls, nanos: int) -> Time:
        """Time from Unix nanoseconds, truncated to milliseconds."""
        return cls(_trunc_div(int(nanos), _NANOS_PER_MILLI))

    def add(self, duration: int | timedelta) -> Time:
        """Return this time plus a duration given in nanoseconds or as a timedelta."""
        return Time(int(self) + _trunc_div(_to_nanos(duration), _NANOS_PER_MILLI))

    def sub(self, other: int) -> Duration:
        """Return the duration between this time and another."""
        return Duration((int(self) - int(other)) * _NANOS_PER_MILLI)

    def to_datetime(self) -> datetime:
        """Return the time as an aware UTC datetime."""
        return _EPOCH + timedelta(milliseconds=int(self))

    def unix(self) -> int:
        """Seconds since the epoch."""
        return _trunc_div(int(self), _MILLIS_PER_SECOND)

    def unix_nano(self) -> int:
        """Nanoseconds since the epoch."""
        return int(self) * _NANOS_PER_MILLI

    def __str__(self) -> str:
        return _format_float(float(int(self)) / float(_MILLIS_PER_SECOND))

    def to_json(self) -> str:
        """Encode as a JSON number of seconds."""
        return str(self)

    @classmethod
    def from_json(cls, text: str | bytes) -> Time:
        """Decode a JSON number of seconds with up to millisecond precision."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8")
        parts = text.split(".")
        if len(parts) == 1:
            return cls(_parse_int(parts[0], 64) * _MILLIS_PER_SECOND)
        if len(parts) == 2:
            whole = _parse_int(parts[0], 64) * _MILLIS_PER_SECOND
            frac = parts[1]
            if len(frac) > _DOT_PRECISION:
                frac = frac[:_DOT_PRECISION]
            else:
                frac = frac + "0" * (_DOT_PRECISION - len(frac))
            millis = _parse_int(frac, 32)
            # A value like -0.1 loses its sign in the integer part.
            if parts[0].startswith("-") and whole + millis > 0:
                return cls(-(whole + millis))
            return cls(whole + millis)
        raise ValueError(f"invalid time {json.dumps(text)}")


EARLIEST = Time(_INT64_MIN)
LATEST = Time(_INT64_MAX)


@dataclass(frozen=True)
class Interval:
    """An interval between two timestamps."""

    start: Time
    end: Time