from datetime import datetime, timedelta, timezone

import pytest

from promcommon.alert import (
    Alert,
    AlertStatus,
    alerts_status,
    alerts_status_at,
    has_firing,
    has_firing_at,
)
from promcommon.names import ValidationError, ValidationScheme, name_validation_scheme

TS = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
MINUTE = timedelta(minutes=1)


@pytest.mark.parametrize(
    "alert,err",
    [
        (Alert(labels={"a": "b"}, starts_at=TS), ""),
        (Alert(labels={"a": "b"}), "start time missing"),
        (Alert(labels={"a": "b"}, starts_at=TS, ends_at=TS), ""),
        (Alert(labels={"a": "b"}, starts_at=TS, ends_at=TS + MINUTE), ""),
        (
            Alert(labels={"a": "b"}, starts_at=TS, ends_at=TS - MINUTE),
            "start time must be before end time",
        ),
        (Alert(starts_at=TS), "at least one label pair required"),
        (
            Alert(labels={"a": "b", "!bad": "label"}, starts_at=TS),
            "invalid label set: invalid name",
        ),
        (
            Alert(labels={"a": "b", "bad": "\udcfflabel"}, starts_at=TS),
            "invalid label set: invalid value",
        ),
        (
            Alert(labels={"a": "b"}, annotations={"!bad": "label"}, starts_at=TS),
            "invalid annotations: invalid name",
        ),
        (
            Alert(labels={"a": "b"}, annotations={"bad": "\udcfflabel"}, starts_at=TS),
            "invalid annotations: invalid value",
        ),
    ],
)
def test_alert_validate(alert, err):
    with name_validation_scheme(ValidationScheme.LEGACY):
        if err:
            with pytest.raises(ValidationError) as info:
                alert.validate()
            assert err in str(info.value)
        else:
            assert alert.validate() is None


def test_alert_active():
    alert = Alert(labels={"foo": "bar", "lorem": "ipsum"}, starts_at=datetime.now(timezone.utc))
    assert str(alert) == "[d181d0f][active]"
    assert alert.status() == AlertStatus.FIRING
    assert alert.status() == "firing"


def test_alert_resolved():
    now = datetime.now(timezone.utc)
    ts1 = now - 2 * MINUTE
    ts2 = now - MINUTE
    alert = Alert(labels={"foo": "bar", "lorem": "ipsum"}, starts_at=ts1, ends_at=ts2)
    assert alert.resolved() is True
    assert str(alert) == "[d181d0f][resolved]"
    assert alert.status() == AlertStatus.RESOLVED

    ms = timedelta(milliseconds=1)
    assert alert.resolved_at(ts1) is False
    assert alert.resolved_at(ts2 - ms) is False
    assert alert.resolved_at(ts2) is True
    assert alert.resolved_at(ts2 + ms) is True

    assert alert.status_at(ts1) == AlertStatus.FIRING
    assert alert.status_at(ts1 - ms) == AlertStatus.FIRING
    assert alert.status_at(ts2) == AlertStatus.RESOLVED
    assert alert.status_at(ts2 + ms) == AlertStatus.RESOLVED


def test_alert_name():
    alert = Alert(labels={"alertname": "DiskFull"})
    assert alert.name() == "DiskFull"
    assert Alert(labels={"a": "b"}).name() == ""


def test_sort_alerts():
    ts = datetime.now(timezone.utc)
    alerts = [
        Alert(
            labels={"alertname": "InternalError", "dev": "sda3"},
            starts_at=ts - 6 * MINUTE,
            ends_at=ts - 3 * MINUTE,
        ),
        Alert(
            labels={"alertname": "DiskFull", "dev": "sda1"},
            starts_at=ts - 5 * MINUTE,
            ends_at=ts - 4 * MINUTE,
        ),
        Alert(
            labels={"alertname": "OutOfMemory", "dev": "sda1"},
            starts_at=ts - 2 * MINUTE,
            ends_at=ts - MINUTE,
        ),
        Alert(
            labels={"alertname": "DiskFull", "dev": "sda2"},
            starts_at=ts - 2 * MINUTE,
            ends_at=ts - 3 * MINUTE,
        ),
        Alert(
            labels={"alertname": "OutOfMemory", "dev": "sda2"},
            starts_at=ts - 5 * MINUTE,
            ends_at=ts - 2 * MINUTE,
        ),
    ]
    assert [str(a) for a in sorted(alerts)] == [
        "DiskFull[5ffe595][resolved]",
        "InternalError[09cfd46][resolved]",
        "OutOfMemory[d43a602][resolved]",
        "DiskFull[5ff4595][resolved]",
        "OutOfMemory[d444602][resolved]",
    ]


def test_alerts_status():
    ts = datetime.now(timezone.utc)
    firing = [
        Alert(labels={"foo": "bar"}, starts_at=ts),
        Alert(labels={"bar": "baz"}, starts_at=ts),
    ]
    assert alerts_status(firing) == AlertStatus.FIRING
    assert alerts_status_at(firing, ts) == AlertStatus.FIRING
    assert has_firing(firing) is True

    ts = datetime.now(timezone.utc)
    resolved = [
        Alert(labels={"foo": "bar"}, starts_at=ts - MINUTE, ends_at=ts),
        Alert(labels={"bar": "baz"}, starts_at=ts - MINUTE, ends_at=ts),
    ]
    assert alerts_status(resolved) == AlertStatus.RESOLVED
    assert alerts_status_at(resolved, ts) == AlertStatus.RESOLVED
    assert has_firing_at(resolved, ts) is False

    ts = datetime.now(timezone.utc)
    mixed = [
        Alert(labels={"foo": "bar"}, starts_at=ts - MINUTE, ends_at=ts + 5 * MINUTE),
        Alert(labels={"bar": "baz"}, starts_at=ts - MINUTE, ends_at=ts),
    ]
    assert alerts_status(mixed) == AlertStatus.FIRING
    assert alerts_status_at(mixed, ts) == AlertStatus.FIRING
    assert alerts_status_at(mixed, ts + 5 * MINUTE) == AlertStatus.RESOLVED