"""Label and metric names: validation, escaping and the well-known label constants."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

ALERT_NAME_LABEL = "alertname"
EXPORTED_LABEL_PREFIX = "exported_"
METRIC_NAME_LABEL = "__name__"
SCHEME_LABEL = "__scheme__"
ADDRESS_LABEL = "__address__"
METRICS_PATH_LABEL = "__metrics_path__"
SCRAPE_INTERVAL_LABEL = "__scrape_interval__"
SCRAPE_TIMEOUT_LABEL = "__scrape_timeout__"
RESERVED_LABEL_PREFIX = "__"
META_LABEL_PREFIX = "__meta_"
TMP_LABEL_PREFIX = "__tmp_"
PARAM_LABEL_PREFIX = "__param_"
JOB_LABEL = "job"
INSTANCE_LABEL = "instance"
BUCKET_LABEL = "le"
QUANTILE_LABEL = "quantile"

ESCAPING_KEY = "escaping"
ALLOW_UTF8 = "allow-utf-8"
ESCAPE_UNDERSCORES = "underscores"
ESCAPE_DOTS = "dots"
ESCAPE_VALUES = "values"

# Use with fullmatch(); the fast checks below do the same job.
LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")

_MAX_RUNE = 0x10FFFF
_SURROGATES = range(0xD800, 0xE000)


class ValidationError(ValueError):
    """Raised when a name, value or object fails validation."""


class ValidationScheme(Enum):
    """How metric and label names are validated."""

    LEGACY = 0
    UTF8 = 1


class EscapingScheme(Enum):
    """How names that are not legacy-valid are escaped."""

    NO_ESCAPING = 0
    UNDERSCORE = 1
    DOTS = 2
    VALUE_ENCODING = 3

    def __str__(self) -> str:
        return _ESCAPING_NAMES[self]


_ESCAPING_NAMES = {
    EscapingScheme.NO_ESCAPING: ALLOW_UTF8,
    EscapingScheme.UNDERSCORE: ESCAPE_UNDERSCORES,
    EscapingScheme.DOTS: ESCAPE_DOTS,
    EscapingScheme.VALUE_ENCODING: ESCAPE_VALUES,
}


class MetricType(str, Enum):
    """Metric type values."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    GAUGE_HISTOGRAM = "gaugehistogram"
    SUMMARY = "summary"
    INFO = "info"
    STATESET = "stateset"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class LabelPair:
    """A label name paired with its value; orders by name, then value."""

    name: str
    value: str


NAME_ESCAPING_SCHEME = EscapingScheme.UNDERSCORE

_validation_scheme = ValidationScheme.UTF8


def get_name_validation_scheme() -> ValidationScheme:
    """Return the scheme currently used to validate names."""
    return _validation_scheme


def set_name_validation_scheme(scheme: ValidationScheme) -> None:
    """Select the scheme used to validate names."""
    global _validation_scheme
    _validation_scheme = ValidationScheme(scheme)


@contextmanager
def name_validation_scheme(scheme: ValidationScheme) -> Iterator[ValidationScheme]:
    """Temporarily switch the name validation scheme."""
    previous = get_name_validation_scheme()
    set_name_validation_scheme(scheme)
    try:
        yield get_name_validation_scheme()
    finally:
        set_name_validation_scheme(previous)


def _as_text(value: str | bytes) -> str | None:
    """Return the value as text if it is valid UTF-8, else None."""
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return value


def _is_valid_legacy_rune(c: str, first: bool, allow_colon: bool = True) -> bool:
    return (
        ("a" <= c <= "z")
        or ("A" <= c <= "Z")
        or c == "_"
        or (allow_colon and c == ":")
        or ("0" <= c <= "9" and not first)
    )


def is_valid_legacy_label_name(name: str | bytes) -> bool:
    """True if the name matches the legacy label name pattern."""
    text = _as_text(name)
    if not text:
        return False
    return all(
        _is_valid_legacy_rune(c, i == 0, allow_colon=False) for i, c in enumerate(text)
    )


def is_valid_label_name(name: str | bytes) -> bool:
    """True if the name is valid under the current validation scheme."""
    if len(name) == 0:
        return False
    if _validation_scheme is ValidationScheme.LEGACY:
        return is_valid_legacy_label_name(name)
    return _as_text(name) is not None


def is_valid_label_value(value: str | bytes) -> bool:
    """True if the value is valid UTF-8."""
    return _as_text(value) is not None


def is_valid_legacy_metric_name(name: str | bytes) -> bool:
    """True if the name matches the legacy metric name pattern."""
    text = _as_text(name)
    if not text:
        return False
    return all(_is_valid_legacy_rune(c, i == 0) for i, c in enumerate(text))


def is_valid_metric_name(name: str | bytes) -> bool:
    """True if the name is valid under the current validation scheme."""
    if _validation_scheme is ValidationScheme.LEGACY:
        return is_valid_legacy_metric_name(name)
    if len(name) == 0:
        return False
    return _as_text(name) is not None


def label_names_string(names: Iterable[str]) -> str:
    """Join label names with a comma and a space."""
    return ", ".join(names)


def escape_name(name: str, scheme: EscapingScheme) -> str:
    """Escape a name according to the given scheme; no validation is done."""
    if not name:
        return name
    scheme = EscapingScheme(scheme)
    if scheme is EscapingScheme.NO_ESCAPING:
        return name
    if scheme is EscapingScheme.UNDERSCORE:
        if is_valid_legacy_metric_name(name):
            return name
        return "".join(
            c if _is_valid_legacy_rune(c, i == 0) else "_" for i, c in enumerate(name)
        )
    if scheme is EscapingScheme.DOTS:
        parts = []
        for i, c in enumerate(name):
            if c == "_":
                parts.append("__")
            elif c == ".":
                parts.append("_dot_")
            elif _is_valid_legacy_rune(c, i == 0):
                parts.append(c)
            else:
                parts.append("__")
        return "".join(parts)
    if is_valid_legacy_metric_name(name):
        return name
    parts = ["U__"]
    for i, c in enumerate(name):
        code = ord(c)
        if c == "_":
            parts.append("__")
        elif _is_valid_legacy_rune(c, i == 0):
            parts.append(c)
        elif code in _SURROGATES or code > _MAX_RUNE:
            parts.append("_FFFD_")
        else:
            parts.append(f"_{code:x}_")
    return "".join(parts)


def _hex_digit(c: str) -> int | None:
    code = ord(c)
    if code >= 0x80:
        return None
    r = code | 0x20
    if ord("0") <= r <= ord("9"):
        return r - ord("0")
    if ord("a") <= r <= ord("f"):
        return r - ord("a") + 10
    return None


def _unescape_values(name: str) -> str:
    if not name.startswith("U__"):
        return name
    out = []
    chars = iter(name[3:])
    for c in chars:
        if c != "_":
            out.append(c)
            continue
        nxt = next(chars, None)
        if nxt is None:
            return name
        if nxt == "_":
            out.append("_")
            continue
        code = 0
        digits = 0
        while True:
            if nxt is None:
                return name
            if digits >= 6:
                return name
            if nxt == "_":
                if code > _MAX_RUNE or code in _SURROGATES:
                    return name
                out.append(chr(code))
                break
            value = _hex_digit(nxt)
            if value is None:
                return name
            code = code * 16 + value
            digits += 1
            nxt = next(chars, None)
    return "".join(out)


def unescape_name(name: str, scheme: EscapingScheme) -> str:
    """Undo escaping where possible; on malformed input return the input unchanged."""
    if not name:
        return name
    scheme = EscapingScheme(scheme)
    if scheme in (EscapingScheme.NO_ESCAPING, EscapingScheme.UNDERSCORE):
        return name
    if scheme is EscapingScheme.DOTS:
        return name.replace("_dot_", ".").replace("__", "_")
    return _unescape_values(name)


def to_escaping_scheme(s: str) -> EscapingScheme:
    """Parse the value of an escaping parameter."""
    if s == "":
        raise ValidationError("got empty string instead of escaping scheme")
    for scheme, text in _ESCAPING_NAMES.items():
        if text == s:
            return scheme
    raise ValidationError(f"unknown format scheme {s}")