"""FNV-1a hashing of label sets: fingerprints and signatures."""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping

OFFSET64 = 14695981039346656037
PRIME64 = 1099511628211
SEPARATOR_BYTE = 255

_MASK64 = (1 << 64) - 1
_HEX_RE = re.compile(r"[0-9a-fA-F]+")


class Fingerprint(int):
    """A 64-bit hash identifying a label set."""

    def __new__(cls, value: int = 0) -> Fingerprint:
        value = int(value)
        if not 0 <= value <= _MASK64:
            raise ValueError(f"fingerprint out of range: {value}")
        return super().__new__(cls, value)

    def __str__(self) -> str:
        return f"{int(self):016x}"

    def __repr__(self) -> str:
        return f"Fingerprint(0x{int(self):016x})"

    @classmethod
    def from_string(cls, s: str) -> Fingerprint:
        """Parse a hexadecimal fingerprint without prefix or sign."""
        if not _HEX_RE.fullmatch(s):
            raise ValueError(f"invalid fingerprint {s!r}")
        value = int(s, 16)
        if value > _MASK64:
            raise ValueError(f"fingerprint {s!r} out of range")
        return cls(value)


def parse_fingerprint(s: str) -> Fingerprint:
    """Parse a hexadecimal string into a fingerprint."""
    return Fingerprint.from_string(s)


def _to_bytes(s: str | bytes) -> bytes:
    if isinstance(s, (bytes, bytearray)):
        return bytes(s)
    try:
        return s.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return s.encode("utf-8", "surrogatepass")


def hash_new() -> int:
    """Return the initial FNV-1a 64-bit hash value."""
    return OFFSET64


def hash_add(h: int, s: str | bytes) -> int:
    """Add the UTF-8 bytes of a string to a hash value."""
    for b in _to_bytes(s):
        h = ((h ^ b) * PRIME64) & _MASK64
    return h


def hash_add_byte(h: int, b: int) -> int:
    """Add a single byte to a hash value."""
    return ((h ^ (b & 0xFF)) * PRIME64) & _MASK64


def _hash_pairs(names: list[str], labels: Mapping[str, str]) -> int:
    total = hash_new()
    for name in names:
        total = hash_add(total, name)
        total = hash_add_byte(total, SEPARATOR_BYTE)
        total = hash_add(total, labels.get(name, ""))
        total = hash_add_byte(total, SEPARATOR_BYTE)
    return total


def labels_to_signature(labels: Mapping[str, str] | None) -> int:
    """Return a quasi-unique signature for a label mapping."""
    if not labels:
        return hash_new()
    return _hash_pairs(sorted(labels), labels)


def label_set_fingerprint(labels: Mapping[str, str] | None) -> Fingerprint:
    """Return the fingerprint of a label set."""
    return Fingerprint(labels_to_signature(labels))


def label_set_fast_fingerprint(labels: Mapping[str, str] | None) -> Fingerprint:
    """Return an order-free XOR fingerprint; quicker but more collision-prone."""
    if not labels:
        return Fingerprint(hash_new())
    result = 0
    for name, value in labels.items():
        total = hash_add(hash_new(), name)
        total = hash_add_byte(total, SEPARATOR_BYTE)
        total = hash_add(total, value)
        result ^= total
    return Fingerprint(result)


def signature_for_labels(metric: Mapping[str, str], *args: str) -> int:
    """Signature over only the named labels; missing labels count as empty."""
    if not args:
        return hash_new()
    return _hash_pairs(sorted(args), metric)


def signature_without_labels(
    metric: Mapping[str, str], labels: Collection[str] | None
) -> int:
    """Signature over all labels except the excluded names."""
    if not metric:
        return hash_new()
    excluded = labels or ()
    names = sorted(name for name in metric if name not in excluded)
    if not names:
        return hash_new()
    return _hash_pairs(names, metric)