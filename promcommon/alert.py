"""Alerts and their firing or resolved status."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from promcommon.fingerprint import Fingerprint, label_set_fingerprint
from promcommon.labelset import LabelSet
from promcommon.names import ALERT_NAME_LABEL, ValidationError


class AlertStatus(str, Enum):
    """Whether an alert is firing or resolved."""

    FIRING = "firing"
    RESOLVED = "resolved"

    def __str__(self) -> str:
        return self.value


def _now_like(ts: datetime) -> datetime:
    """The current time, aware or naive to match the given datetime."""
    return datetime.now(ts.tzinfo)


def _before(a: datetime | None, b: datetime | None) -> bool:
    """Compare optional times; a missing time is earlier than any other."""
    if a is None:
        return b is not None
    if b is None:
        return False
    return a < b


@dataclass
class Alert:
    """An alert: identifying labels, annotations and an activity interval."""

    labels: LabelSet = field(default_factory=LabelSet)
    annotations: LabelSet = field(default_factory=LabelSet)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    generator_url: str = ""

    def __post_init__(self) -> None:
        self.labels = LabelSet(self.labels or {})
        self.annotations = LabelSet(self.annotations or {})

    def name(self) -> str:
        """The value of the alertname label."""
        return self.labels.get(ALERT_NAME_LABEL, "")

    def fingerprint(self) -> Fingerprint:
        """The fingerprint of the alert's labels."""
        return label_set_fingerprint(self.labels)

    def __str__(self) -> str:
        state = "resolved" if self.resolved() else "active"
        return f"{self.name()}[{str(self.fingerprint())[:7]}][{state}]"

    def resolved(self) -> bool:
        """True if the activity interval ended in the past."""
        if self.ends_at is None:
            return False
        return self.resolved_at(_now_like(self.ends_at))

    def resolved_at(self, ts: datetime) -> bool:
        """True if the activity interval ended at or before ts."""
        if self.ends_at is None:
            return False
        return not self.ends_at > ts

    def status(self) -> AlertStatus:
        """The alert's status now."""
        return AlertStatus.RESOLVED if self.resolved() else AlertStatus.FIRING

    def status_at(self, ts: datetime) -> AlertStatus:
        """The alert's status at ts."""
        return AlertStatus.RESOLVED if self.resolved_at(ts) else AlertStatus.FIRING

    def validate(self) -> None:
        """Raise ValidationError if the alert data is inconsistent."""
        if self.starts_at is None:
            raise ValidationError("start time missing")
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValidationError("start time must be before end time")
        try:
            self.labels.validate()
        except ValidationError as err:
            raise ValidationError(f"invalid label set: {err}") from err
        if not self.labels:
            raise ValidationError("at least one label pair required")
        try:
            self.annotations.validate()
        except ValidationError as err:
            raise ValidationError(f"invalid annotations: {err}") from err

    def __lt__(self, other: Alert) -> bool:
        if _before(self.starts_at, other.starts_at):
            return True
        if _before(self.ends_at, other.ends_at):
            return True
        return self.fingerprint() < other.fingerprint()


def has_firing(alerts: Iterable[Alert]) -> bool:
    """True if any alert is not resolved now."""
    return any(not a.resolved() for a in alerts)


def has_firing_at(alerts: Iterable[Alert], ts: datetime) -> bool:
    """True if any alert is not resolved at ts."""
    return any(not a.resolved_at(ts) for a in alerts)


def alerts_status(alerts: Iterable[Alert]) -> AlertStatus:
    """Firing if at least one alert is firing now."""
    return AlertStatus.FIRING if has_firing(alerts) else AlertStatus.RESOLVED


def alerts_status_at(alerts: Iterable[Alert], ts: datetime) -> AlertStatus:
    """Firing if at least one alert is firing at ts."""
    return AlertStatus.FIRING if has_firing_at(alerts, ts) else AlertStatus.RESOLVED