"""Native histogram samples: buckets, histograms and timestamped histograms."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from promcommon.samples import (
    _Number,
    _decode_json,
    _float_from_json_value,
    _time_from_json_value,
    format_float,
)
from promcommon.timestamps import Time

_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1


def _special(x: float) -> str | None:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "+Inf" if x > 0 else "-Inf"
    return None


def _format_g(value: float) -> str:
    """Shortest %g form: exponent notation below 1e-4 or from 1e6 upwards."""
    x = float(value)
    special = _special(x)
    if special is not None:
        return special
    if x == 0:
        return "-0" if math.copysign(1.0, x) < 0 else "0"
    sign, digits, exponent = Decimal(repr(x)).normalize().as_tuple()
    exp10 = len(digits) + exponent - 1
    if -4 <= exp10 < 6:
        return format_float(x)
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(d) for d in digits[1:])
    exp_sign = "+" if exp10 >= 0 else "-"
    return f"{'-' if sign else ''}{mantissa}e{exp_sign}{abs(exp10):02d}"


def _format_fixed(value: float) -> str:
    x = float(value)
    special = _special(x)
    if special is not None:
        return special
    return f"{x:.6f}"


def _quoted(value: float) -> str:
    return json.dumps(format_float(value))


def _int32_from_json_value(value: Any) -> int:
    if isinstance(value, _Number):
        text = str(value)
    elif isinstance(value, int) and not isinstance(value, bool):
        text = str(value)
    else:
        raise ValueError("bucket boundaries must be a JSON integer")
    try:
        number = int(text, 10)
    except ValueError as err:
        raise ValueError("bucket boundaries must be a JSON integer") from err
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise ValueError(f"bucket boundaries out of range: {text}")
    return number


def _field(data: dict, key: str) -> tuple[Any, bool]:
    """Look a key up exactly, then ignoring case."""
    if key in data:
        return data[key], True
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == key:
            return value, True
    return None, False


@dataclass
class HistogramBucket:
    """A histogram bucket; boundaries says which ends are inclusive.

    0: upper inclusive, 1: lower inclusive, 2: neither, 3: both.
    """

    boundaries: int = 0
    lower: float = 0.0
    upper: float = 0.0
    count: float = 0.0

    def __post_init__(self) -> None:
        self.boundaries = int(self.boundaries)
        self.lower = float(self.lower)
        self.upper = float(self.upper)
        self.count = float(self.count)

    def __str__(self) -> str:
        opening = "[" if self.boundaries in (1, 3) else "("
        closing = "]" if self.boundaries in (0, 3) else ")"
        return (
            f"{opening}{_format_g(self.lower)},{_format_g(self.upper)}{closing}"
            f":{format_float(self.count)}"
        )

    def to_json(self) -> str:
        """Encode as [boundaries, "lower", "upper", "count"]."""
        return (
            f"[{self.boundaries},{_quoted(self.lower)},"
            f"{_quoted(self.upper)},{_quoted(self.count)}]"
        )

    @classmethod
    def from_json(cls, text: Any) -> HistogramBucket:
        """Decode from JSON text or from the array it decodes to."""
        data = _decode_json(text)
        if not isinstance(data, (list, tuple)):
            raise ValueError("histogram bucket must be a JSON array")
        if len(data) != 4:
            raise ValueError(f"wrong number of fields: {len(data)} != 4")
        return cls(
            boundaries=_int32_from_json_value(data[0]),
            lower=_float_from_json_value(data[1], "float value"),
            upper=_float_from_json_value(data[2], "float value"),
            count=_float_from_json_value(data[3], "float value"),
        )


@dataclass
class SampleHistogram:
    """A histogram's count, sum and buckets."""

    count: float = 0.0
    sum: float = 0.0
    buckets: list[HistogramBucket] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.count = float(self.count)
        self.sum = float(self.sum)
        self.buckets = list(self.buckets or [])

    def __str__(self) -> str:
        buckets = " ".join(str(b) for b in self.buckets)
        return (
            f"Count: {_format_fixed(self.count)}, Sum: {_format_fixed(self.sum)}, "
            f"Buckets: [{buckets}]"
        )

    def to_json(self) -> str:
        """Encode as an object with count, sum and buckets."""
        buckets = ",".join(b.to_json() for b in self.buckets)
        return (
            f'{{"count":{_quoted(self.count)},"sum":{_quoted(self.sum)},'
            f'"buckets":[{buckets}]}}'
        )

    @classmethod
    def from_json(cls, text: Any) -> SampleHistogram:
        """Decode from JSON text or from the object it decodes to."""
        data = _decode_json(text)
        if not isinstance(data, dict):
            raise ValueError("histogram must be a JSON object")
        histogram = cls()
        value, found = _field(data, "count")
        if found:
            histogram.count = _float_from_json_value(value, "float value")
        value, found = _field(data, "sum")
        if found:
            histogram.sum = _float_from_json_value(value, "float value")
        value, found = _field(data, "buckets")
        if found and value is not None:
            if not isinstance(value, (list, tuple)):
                raise ValueError("histogram buckets must be a JSON array")
            histogram.buckets = [HistogramBucket.from_json(b) for b in value]
        return histogram


@dataclass
class SampleHistogramPair:
    """A histogram at a timestamp."""

    timestamp: Time = Time(0)
    histogram: SampleHistogram | None = None

    def __post_init__(self) -> None:
        self.timestamp = Time(int(self.timestamp))

    def __str__(self) -> str:
        histogram = "<nil>" if self.histogram is None else str(self.histogram)
        return f"{histogram} @[{self.timestamp}]"

    def to_json(self) -> str:
        """Encode as [seconds, histogram]; the histogram must be set."""
        if self.histogram is None:
            raise ValueError("histogram is nil")
        return f"[{self.timestamp.to_json()},{self.histogram.to_json()}]"

    @classmethod
    def from_json(cls, text: Any) -> SampleHistogramPair:
        """Decode from JSON text or from the array it decodes to."""
        data = _decode_json(text)
        if not isinstance(data, (list, tuple)):
            raise ValueError("histogram pair must be a JSON array")
        if len(data) != 2:
            raise ValueError(f"wrong number of fields: {len(data)} != 2")
        timestamp = _time_from_json_value(data[0])
        if data[1] is None:
            raise ValueError("histogram is null")
        return cls(timestamp=timestamp, histogram=SampleHistogram.from_json(data[1]))