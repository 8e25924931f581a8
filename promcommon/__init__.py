"""Shared monitoring data model: names, labels, fingerprints, timestamps, values, alerts, silences and logging setup."""

__version__ = "0.1.0"

__all__ = [
    "alert",
    "fingerprint",
    "flags",
    "histogram",
    "labelset",
    "logsetup",
    "names",
    "samples",
    "silence",
    "timestamps",
    "values",
]