"""Label sets and metrics: maps from label names to label values."""

from __future__ import annotations

import json

from promcommon.fingerprint import (
    Fingerprint,
    label_set_fast_fingerprint,
    label_set_fingerprint,
)
from promcommon.names import (
    METRIC_NAME_LABEL,
    ValidationError,
    is_valid_label_name,
    is_valid_label_value,
)

_SIMPLE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def _quote(text: str) -> str:
    """Double-quote a string, escaping what cannot be printed."""
    parts = ['"']
    for c in text:
        code = ord(c)
        if c in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[c])
        elif 0xDC80 <= code <= 0xDCFF:
            parts.append(f"\\x{code - 0xDC00:02x}")
        elif c.isprintable():
            parts.append(c)
        elif code < 0x80:
            parts.append(f"\\x{code:02x}")
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


class LabelSet(dict):
    """A mapping of label names to label values."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict.__repr__(self)})"

    def validate(self) -> None:
        """Raise ValidationError if any name or value is invalid."""
        for name, value in self.items():
            if not is_valid_label_name(name):
                raise ValidationError(f"invalid name {_quote(name)}")
            if not is_valid_label_value(value):
                raise ValidationError(f"invalid value {_quote(value)}")

    def before(self, other: dict) -> bool:
        """True if this set sorts before the other.

        Fewer labels sort first; otherwise the first differing label, in
        sorted name order, decides.
        """
        if len(self) != len(other):
            return len(self) < len(other)
        for name in sorted([*self, *other]):
            if name not in self:
                return True
            if name not in other:
                return False
            mine, theirs = self[name], other[name]
            if mine != theirs:
                return mine < theirs
        return False

    def clone(self) -> LabelSet:
        """Return a copy of the label set."""
        return type(self)(self)

    def merge(self, other: dict) -> LabelSet:
        """Return a new set with the other set's labels laid over these."""
        result = type(self)(self)
        result.update(other)
        return result

    def fingerprint(self) -> Fingerprint:
        """Return the label set's fingerprint."""
        return label_set_fingerprint(self)

    def fast_fingerprint(self) -> Fingerprint:
        """Return the faster, more collision-prone fingerprint."""
        return label_set_fast_fingerprint(self)

    def __str__(self) -> str:
        pairs = (f"{name}={_quote(self[name])}" for name in sorted(self))
        return "{" + ", ".join(pairs) + "}"

    @classmethod
    def from_json(cls, text: str | bytes) -> LabelSet:
        """Decode a JSON object, rejecting invalid label names."""
        data = json.loads(text)
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError("label set must be a JSON object")
        for name, value in data.items():
            if not isinstance(value, str):
                raise ValidationError(f"label value for {_quote(name)} must be a string")
        for name in data:
            if not is_valid_label_name(name):
                raise ValidationError(f"{_quote(name)} is not a valid label name")
        return cls(data)


class Metric(LabelSet):
    """A label set identifying exactly one series."""

    def clone(self) -> Metric:
        """Return a copy of the metric."""
        return Metric(self)

    def __str__(self) -> str:
        has_name = METRIC_NAME_LABEL in self
        metric_name = self.get(METRIC_NAME_LABEL, "")
        labels = sorted(
            f"{name}={_quote(value)}"
            for name, value in self.items()
            if name != METRIC_NAME_LABEL
        )
        if not labels:
            return metric_name if has_name else "{}"
        return f"{metric_name}{{{', '.join(labels)}}}"