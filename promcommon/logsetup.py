"""Standard logger set-up: level and format settings and two output styles."""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TextIO

import yaml

LEVEL_FLAG_OPTIONS = ("debug", "info", "warn", "error")
FORMAT_FLAG_OPTIONS = ("logfmt", "json")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
_LEVEL_NAMES = (
    (logging.ERROR, "ERROR"),
    (logging.WARNING, "WARN"),
    (logging.INFO, "INFO"),
    (logging.DEBUG, "DEBUG"),
)
_STANDARD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

# Debug level also adds the function name to the go-kit caller field.
_caller_add_func = False


class LogStyle(str, Enum):
    """The key names and level spelling of log lines."""

    SLOG = "slog"
    GO_KIT = "go-kit"

    def __str__(self) -> str:
        return self.value


class AllowedLevel:
    """A settable minimum level for log entries."""

    def __init__(self) -> None:
        self._s = ""
        self._level: int | None = None

    @property
    def level(self) -> int:
        """The minimum logging level; info until set."""
        return logging.INFO if self._level is None else self._level

    def set(self, s: str) -> None:
        """Set the level from one of debug, info, warn, error."""
        global _caller_add_func
        level = _LEVELS.get(s.lower())
        if level is None:
            raise ValueError(f"unrecognized log level {s}")
        self._level = level
        _caller_add_func = level == logging.DEBUG
        self._s = s

    def __str__(self) -> str:
        return self._s

    def __repr__(self) -> str:
        return f"AllowedLevel({self._s!r})"

    @classmethod
    def from_yaml(cls, text: str | bytes) -> AllowedLevel:
        """Read a level from a YAML scalar; an empty document gives an unset level."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as err:
            raise ValueError(str(err)) from err
        if data is None or data == "":
            return cls()
        if isinstance(data, (list, dict)):
            raise ValueError("log level must be a YAML scalar")
        if not isinstance(data, str):
            raw = text.decode("utf-8") if isinstance(text, (bytes, bytearray)) else text
            data = raw.strip()
        level = cls()
        level.set(data)
        return level


class AllowedFormat:
    """A settable output format: logfmt or json."""

    def __init__(self) -> None:
        self._s = ""

    def set(self, s: str) -> None:
        """Set the format."""
        if s not in FORMAT_FLAG_OPTIONS:
            raise ValueError(f"unrecognized log format {s}")
        self._s = s

    def __str__(self) -> str:
        return self._s

    def __repr__(self) -> str:
        return f"AllowedFormat({self._s!r})"


@dataclass
class LoggerConfig:
    """Settings for new_logger."""

    level: AllowedLevel | None = None
    format: AllowedFormat | None = None
    style: LogStyle = LogStyle.SLOG
    writer: TextIO | None = None


def _level_name(levelno: int) -> str:
    for base, name in _LEVEL_NAMES:
        if levelno >= base:
            return name if levelno == base else f"{name}+{levelno - base}"
    return f"DEBUG-{logging.DEBUG - levelno}"


def _utc(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, timezone.utc)


def _millis_time(record: logging.LogRecord) -> str:
    dt = _utc(record)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def _precise_time(record: logging.LogRecord) -> str:
    dt = _utc(record)
    frac = f"{dt.microsecond:06d}".rstrip("0")
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + (f".{frac}" if frac else "") + "Z"


def _needs_quoting(s: str) -> bool:
    if not s:
        return True
    return any(c in ' ="' or not c.isprintable() for c in s)


def _logfmt(s: str) -> str:
    return json.dumps(s, ensure_ascii=False) if _needs_quoting(s) else s


class _LevelFilter(logging.Filter):
    def __init__(self, level: AllowedLevel) -> None:
        super().__init__()
        self._level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self._level.level


class _Formatter(logging.Formatter):
    def __init__(self, style: LogStyle, json_output: bool) -> None:
        super().__init__()
        self._style = style
        self._json = json_output

    def _fields(self, record: logging.LogRecord) -> list[tuple[str, Any]]:
        source = os.path.basename(record.pathname)
        if self._style is LogStyle.GO_KIT:
            caller = source
            if _caller_add_func:
                caller += f"({record.funcName})"
            fields = [
                ("ts", _millis_time(record)),
                ("level", _level_name(record.levelno).lower()),
                ("caller", f"{caller}:{record.lineno}"),
            ]
        else:
            timestamp = _precise_time(record) if self._json else _millis_time(record)
            fields = [
                ("time", timestamp),
                ("level", _level_name(record.levelno)),
                ("source", f"{source}:{record.lineno}"),
            ]
        fields.append(("msg", record.getMessage()))
        fields.extend(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        return fields

    def format(self, record: logging.LogRecord) -> str:
        fields = self._fields(record)
        if self._json:
            return json.dumps(
                dict(fields), ensure_ascii=False, default=str, separators=(",", ":")
            )
        return " ".join(f"{_logfmt(key)}={_logfmt(str(value))}" for key, value in fields)


def new_logger(config: LoggerConfig) -> logging.Logger:
    """Build a logger from the configuration; it defaults to info level and stderr.

    Extra attributes are passed with the ``extra`` mapping of the logging calls.
    """
    if config.level is None:
        config.level = AllowedLevel()
        config.level.set("info")
    if config.writer is None:
        config.writer = sys.stderr
    handler = logging.StreamHandler(config.writer)
    handler.addFilter(_LevelFilter(config.level))
    json_output = config.format is not None and str(config.format) == "json"
    handler.setFormatter(_Formatter(LogStyle(config.style), json_output))
    logger = logging.Logger("promcommon")
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def new_nop_logger() -> logging.Logger:
    """Return a logger that discards everything."""
    logger = logging.Logger("promcommon.nop")
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    logger.disabled = True
    return logger