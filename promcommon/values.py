"""Query results: samples, sample streams, scalars, strings, vectors and matrices."""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass, field
from typing import Any, ClassVar

from promcommon.histogram import SampleHistogram, SampleHistogramPair, _field
from promcommon.labelset import Metric
from promcommon.samples import (
    SamplePair,
    ValueType,
    _decode_json,
    _Number,
    _time_from_json_value,
    format_float,
    parse_float_string,
    sample_values_equal,
)
from promcommon.timestamps import EARLIEST, Time

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _json_string(text: str) -> str:
    """Encode a string as JSON, escaping HTML-sensitive characters."""
    encoded = json.dumps(text, ensure_ascii=False)
    for raw, escaped in _HTML_ESCAPES.items():
        encoded = encoded.replace(raw, escaped)
    return encoded


def _metric_json(metric: Metric) -> str:
    pairs = (f"{_json_string(name)}:{_json_string(metric[name])}" for name in sorted(metric))
    return "{" + ",".join(pairs) + "}"


def _metric_from_json(data: Any) -> Metric:
    if data is None:
        return Metric()
    if not isinstance(data, dict):
        raise ValueError("metric must be a JSON object")
    for name, value in data.items():
        if not isinstance(value, str) or isinstance(value, _Number):
            raise ValueError(f"label value for {json.dumps(name)} must be a string")
    return Metric(data)


def _require(value: Any, kind: type | tuple[type, ...], what: str) -> Any:
    if not isinstance(value, kind) or isinstance(value, _Number):
        raise ValueError(f"{what} has the wrong JSON type")
    return value


def _histograms_equal(a: SampleHistogram, b: SampleHistogram | None) -> bool:
    if a is b:
        return True
    if b is None:
        return False
    if a.count != b.count or a.sum != b.sum or len(a.buckets) != len(b.buckets):
        return False
    return all(
        x is y
        or (
            x.boundaries == y.boundaries
            and x.lower == y.lower
            and x.upper == y.upper
            and x.count == y.count
        )
        for x, y in zip(a.buckets, b.buckets)
    )


@dataclass
class Sample:
    """A value or a histogram of a metric at a timestamp.

    When histogram is set, value is ignored.
    """

    metric: Metric = field(default_factory=Metric)
    value: float = 0.0
    timestamp: Time = Time(0)
    histogram: SampleHistogram | None = None

    def __post_init__(self) -> None:
        self.metric = Metric(self.metric or {})
        self.value = float(self.value)
        self.timestamp = Time(int(self.timestamp))

    def equal(self, other: Sample) -> bool:
        """Compare metric, timestamp, then value or histogram; NaN equals NaN."""
        if self is other:
            return True
        if self.metric != other.metric:
            return False
        if self.timestamp != other.timestamp:
            return False
        if self.histogram is not None:
            return _histograms_equal(self.histogram, other.histogram)
        return sample_values_equal(self.value, other.value)

    def __lt__(self, other: Sample) -> bool:
        if self.metric.before(other.metric):
            return True
        if other.metric.before(self.metric):
            return False
        return self.timestamp < other.timestamp

    def _pair(self) -> SamplePair | SampleHistogramPair:
        if self.histogram is not None:
            return SampleHistogramPair(timestamp=self.timestamp, histogram=self.histogram)
        return SamplePair(timestamp=self.timestamp, value=self.value)

    def __str__(self) -> str:
        return f"{self.metric} => {self._pair()}"

    def to_json(self) -> str:
        """Encode with either a "value" or a "histogram" member."""
        key = "histogram" if self.histogram is not None else "value"
        return f'{{"metric":{_metric_json(self.metric)},"{key}":{self._pair().to_json()}}}'

    @classmethod
    def from_json(cls, text: Any) -> Sample:
        """Decode from JSON text or from the object it decodes to."""
        data = _require(_decode_json(text), dict, "sample")
        metric_data, _ = _field(data, "metric")
        sample = cls(metric=_metric_from_json(metric_data))
        histogram_data, _ = _field(data, "histogram")
        if histogram_data is not None:
            pair = SampleHistogramPair.from_json(
                _require(histogram_data, (list, tuple), "histogram")
            )
            sample.timestamp = pair.timestamp
            sample.histogram = pair.histogram
            return sample
        value_data, _ = _field(data, "value")
        if value_data is not None:
            pair = SamplePair.from_json(_require(value_data, (list, tuple), "sample value"))
            sample.timestamp = pair.timestamp
            sample.value = pair.value
        return sample


ZERO_SAMPLE = Sample(timestamp=EARLIEST)


@dataclass
class SampleStream:
    """The values and histograms of one metric over time."""

    metric: Metric = field(default_factory=Metric)
    values: list[SamplePair] = field(default_factory=list)
    histograms: list[SampleHistogramPair] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.metric = Metric(self.metric or {})
        self.values = list(self.values or [])
        self.histograms = list(self.histograms or [])

    def __str__(self) -> str:
        lines = [str(v) for v in self.values] + [str(h) for h in self.histograms]
        return f"{self.metric} =>\n" + "\n".join(lines)

    def to_json(self) -> str:
        """Encode, leaving out histograms when there are none, and values when
        there are only histograms."""
        parts = [f'"metric":{_metric_json(self.metric)}']
        if self.values or not self.histograms:
            parts.append('"values":[' + ",".join(v.to_json() for v in self.values) + "]")
        if self.histograms:
            parts.append(
                '"histograms":[' + ",".join(h.to_json() for h in self.histograms) + "]"
            )
        return "{" + ",".join(parts) + "}"

    @classmethod
    def from_json(cls, text: Any) -> SampleStream:
        """Decode from JSON text or from the object it decodes to."""
        data = _require(_decode_json(text), dict, "sample stream")
        metric_data, _ = _field(data, "metric")
        stream = cls(metric=_metric_from_json(metric_data))
        values, _ = _field(data, "values")
        if values is not None:
            stream.values = [
                SamplePair.from_json(_require(v, (list, tuple), "sample pair"))
                for v in _require(values, (list, tuple), "values")
            ]
        histograms, _ = _field(data, "histograms")
        if histograms is not None:
            stream.histograms = [
                SampleHistogramPair.from_json(_require(h, (list, tuple), "histogram pair"))
                for h in _require(histograms, (list, tuple), "histograms")
            ]
        return stream


def _pair_items(data: Any, what: str) -> list:
    if not isinstance(data, (list, tuple)):
        raise ValueError(f"{what} must be a JSON array")
    return list(data)


@dataclass
class Scalar:
    """A scalar value at a timestamp."""

    value: float = 0.0
    timestamp: Time = Time(0)

    value_type: ClassVar[ValueType] = ValueType.SCALAR

    def __post_init__(self) -> None:
        self.value = float(self.value)
        self.timestamp = Time(int(self.timestamp))

    def __str__(self) -> str:
        return f"scalar: {format_float(self.value)} @[{self.timestamp}]"

    def to_json(self) -> str:
        """Encode as [seconds, "value"]."""
        return f"[{self.timestamp.to_json()},{json.dumps(format_float(self.value))}]"

    @classmethod
    def from_json(cls, text: Any) -> Scalar:
        """Decode from [seconds, "value"]."""
        items = _pair_items(_decode_json(text), "scalar")
        timestamp = Time(0)
        if items and items[0] is not None:
            timestamp = _time_from_json_value(items[0])
        raw = items[1] if len(items) > 1 and items[1] is not None else ""
        raw = _require(raw, str, "scalar value")
        try:
            value = parse_float_string(raw)
        except ValueError as err:
            raise ValueError(f"error parsing sample value: {err}") from err
        return cls(value=value, timestamp=timestamp)


@dataclass
class StringValue:
    """A string value at a timestamp."""

    value: str = ""
    timestamp: Time = Time(0)

    value_type: ClassVar[ValueType] = ValueType.STRING

    def __post_init__(self) -> None:
        self.timestamp = Time(int(self.timestamp))

    def __str__(self) -> str:
        return self.value

    def to_json(self) -> str:
        """Encode as [seconds, "text"]."""
        return f"[{self.timestamp.to_json()},{_json_string(self.value)}]"

    @classmethod
    def from_json(cls, text: Any) -> StringValue:
        """Decode from [seconds, "text"]."""
        items = _pair_items(_decode_json(text), "string value")
        timestamp = Time(0)
        if items and items[0] is not None:
            timestamp = _time_from_json_value(items[0])
        value = ""
        if len(items) > 1 and items[1] is not None:
            value = _require(items[1], str, "string value")
        return cls(value=value, timestamp=timestamp)


class Vector(list):
    """Samples that all share one timestamp."""

    value_type: ClassVar[ValueType] = ValueType.VECTOR

    def __repr__(self) -> str:
        return f"Vector({list.__repr__(self)})"

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self)

    def equal(self, other: list[Sample]) -> bool:
        """True if both hold equal samples in the same order."""
        if len(self) != len(other):
            return False
        return all(a.equal(b) for a, b in zip(self, other))

    def to_json(self) -> str:
        """Encode as a JSON array of samples."""
        return "[" + ",".join(s.to_json() for s in self) + "]"

    @classmethod
    def from_json(cls, text: Any) -> Vector:
        """Decode a JSON array of samples."""
        data = _decode_json(text)
        if data is None:
            return cls()
        items = _require(data, (list, tuple), "vector")
        return cls(Sample.from_json(_require(item, dict, "sample")) for item in items)


def _compare_streams(a: SampleStream, b: SampleStream) -> int:
    if a.metric.before(b.metric):
        return -1
    if b.metric.before(a.metric):
        return 1
    return 0


class Matrix(list):
    """A list of sample streams."""

    value_type: ClassVar[ValueType] = ValueType.MATRIX

    def __repr__(self) -> str:
        return f"Matrix({list.__repr__(self)})"

    def __str__(self) -> str:
        ordered = sorted(self, key=functools.cmp_to_key(_compare_streams))
        return "\n".join(str(s) for s in ordered)

    def to_json(self) -> str:
        """Encode as a JSON array of sample streams."""
        return "[" + ",".join(s.to_json() for s in self) + "]"

    @classmethod
    def from_json(cls, text: Any) -> Matrix:
        """Decode a JSON array of sample streams."""
        data = _decode_json(text)
        if data is None:
            return cls()
        items = _require(data, (list, tuple), "matrix")
        return cls(
            SampleStream.from_json(_require(item, dict, "sample stream")) for item in items
        )