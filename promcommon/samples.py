"""Sample values, query value types and timestamp/value pairs."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from promcommon.timestamps import EARLIEST, Time

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_HEX_RE = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)[pP][+-]?\d+"
)
_INF_RE = re.compile(r"([+-]?)(?:infinity|inf)", re.IGNORECASE)
_NAN_RE = re.compile(r"nan", re.IGNORECASE)


class _Number(str):
    """The raw text of a JSON number, kept apart from JSON strings."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON number {name}")


def _decode_json(text: Any) -> Any:
    """Decode JSON text, keeping numbers as raw text; pass decoded data through."""
    if isinstance(text, (str, bytes, bytearray)):
        return json.loads(
            text,
            parse_float=_Number,
            parse_int=_Number,
            parse_constant=_reject_constant,
        )
    return text


def _number_text(value: Any) -> str | None:
    if isinstance(value, _Number):
        return str(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _time_from_json_value(value: Any) -> Time:
    text = _number_text(value)
    if text is None:
        raise ValueError("timestamp must be a JSON number")
    return Time.from_json(text)


def _float_from_json_value(value: Any, what: str) -> float:
    if not isinstance(value, str) or isinstance(value, _Number):
        raise ValueError(f"{what} must be a quoted string")
    return parse_float_string(value)


def format_float(value: float) -> str:
    """Shortest decimal form of a float without an exponent; +Inf, -Inf, NaN."""
    x = float(value)
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "+Inf" if x > 0 else "-Inf"
    if x == 0:
        return "-0" if math.copysign(1.0, x) < 0 else "0"
    return format(Decimal(repr(x)).normalize(), "f")


def parse_float_string(text: str) -> float:
    """Parse a float written in decimal, hexadecimal, Inf or NaN form."""
    if _DECIMAL_RE.fullmatch(text):
        result = float(text)
        if math.isinf(result):
            raise ValueError(f"value out of range: {json.dumps(text)}")
        return result
    if _HEX_RE.fullmatch(text):
        try:
            return float.fromhex(text)
        except OverflowError as err:
            raise ValueError(f"value out of range: {json.dumps(text)}") from err
    match = _INF_RE.fullmatch(text)
    if match:
        return -math.inf if match.group(1) == "-" else math.inf
    if _NAN_RE.fullmatch(text):
        return math.nan
    raise ValueError(f"invalid syntax: {json.dumps(text)}")


def sample_values_equal(a: float, b: float) -> bool:
    """True if the values are equal or both are NaN."""
    return a == b or (math.isnan(a) and math.isnan(b))


class ValueType(Enum):
    """The type of a query result."""

    NONE = 0
    SCALAR = 1
    VECTOR = 2
    MATRIX = 3
    STRING = 4

    def __str__(self) -> str:
        return _VALUE_TYPE_NAMES[self]

    @classmethod
    def from_string(cls, s: str) -> ValueType:
        """Parse the textual name of a value type."""
        for value_type, name in _VALUE_TYPE_NAMES.items():
            if name == s:
                return value_type
        raise ValueError(f"unknown value type {json.dumps(s)}")


_VALUE_TYPE_NAMES = {
    ValueType.NONE: "<ValNone>",
    ValueType.SCALAR: "scalar",
    ValueType.VECTOR: "vector",
    ValueType.MATRIX: "matrix",
    ValueType.STRING: "string",
}


@dataclass(frozen=True)
class SamplePair:
    """A sample value at a timestamp."""

    timestamp: Time = Time(0)
    value: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", Time(int(self.timestamp)))
        object.__setattr__(self, "value", float(self.value))

    def equal(self, other: SamplePair) -> bool:
        """Equal timestamps and values, where two NaN values count as equal."""
        return self is other or (
            sample_values_equal(self.value, other.value)
            and self.timestamp == other.timestamp
        )

    def __str__(self) -> str:
        return f"{format_float(self.value)} @[{self.timestamp}]"

    def to_json(self) -> str:
        """Encode as [seconds, "value"]."""
        return f"[{self.timestamp.to_json()},{json.dumps(format_float(self.value))}]"

    @classmethod
    def from_json(cls, text: Any) -> SamplePair:
        """Decode from JSON text or from the array it decodes to."""
        data = _decode_json(text)
        if not isinstance(data, (list, tuple)):
            raise ValueError("sample pair must be a JSON array")
        if len(data) != 2:
            raise ValueError(f"wrong number of fields: {len(data)} != 2")
        return cls(
            timestamp=_time_from_json_value(data[0]),
            value=_float_from_json_value(data[1], "sample value"),
        )


ZERO_SAMPLE_PAIR = SamplePair(timestamp=EARLIEST, value=0.0)