from datetime import datetime, timedelta, timezone

import pytest

from promcommon.names import ValidationError, ValidationScheme, name_validation_scheme
from promcommon.silence import Matcher, Silence

TS = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _error(matcher, scheme):
    with name_validation_scheme(scheme):
        try:
            matcher.validate()
        except ValidationError as err:
            return str(err)
    return ""


@pytest.mark.parametrize(
    "matcher,legacy_err,utf8_err",
    [
        (Matcher(name="name", value="value"), "", ""),
        (Matcher(name="name", value="value", is_regex=True), "", ""),
        (Matcher(name="name!", value="value"), "invalid name", ""),
        (Matcher(name="", value="value"), "invalid name", "invalid name"),
        (Matcher(name="name", value="value\udcff"), "invalid value", "invalid value"),
        (Matcher(name="name", value=""), "invalid value", "invalid value"),
        (Matcher(name="a\udcc5z", value=""), "invalid name", "invalid name"),
    ],
)
def test_matcher_validate(matcher, legacy_err, utf8_err):
    legacy = _error(matcher, ValidationScheme.LEGACY)
    utf8 = _error(matcher, ValidationScheme.UTF8)
    if legacy_err:
        assert legacy_err in legacy
    else:
        assert legacy == ""
    if utf8_err:
        assert utf8_err in utf8
    else:
        assert utf8 == ""


def test_matcher_invalid_regex():
    with pytest.raises(ValidationError, match="invalid regular expression"):
        Matcher(name="name", value="(", is_regex=True).validate()


def test_matcher_from_json():
    m = Matcher.from_json('{"name": "job", "value": "api.*", "isRegex": true}')
    assert m == Matcher(name="job", value="api.*", is_regex=True)


@pytest.mark.parametrize(
    "text",
    ['{"value": "x"}', '{"name": "", "value": "x"}', '{"name": "a", "value": "(", "isRegex": true}'],
)
def test_matcher_from_json_errors(text):
    with pytest.raises(ValidationError):
        Matcher.from_json(text)


def _silence(**overrides):
    fields = dict(
        matchers=[Matcher(name="name", value="value")],
        starts_at=TS,
        ends_at=TS,
        created_at=TS,
        created_by="name",
        comment="comment",
    )
    fields.update(overrides)
    return Silence(**fields)


@pytest.mark.parametrize(
    "silence,err",
    [
        (_silence(), ""),
        (
            _silence(
                matchers=[
                    Matcher(name="name", value="value"),
                    Matcher(name="name", value="value"),
                    Matcher(name="name", value="value"),
                    Matcher(name="name", value="value", is_regex=True),
                ]
            ),
            "",
        ),
        (_silence(ends_at=TS - timedelta(minutes=1)), "start time must be before end time"),
        (_silence(ends_at=None), "end time missing"),
        (_silence(starts_at=None), "start time missing"),
        (_silence(matchers=[Matcher(name="!name", value="value")]), "invalid matcher"),
        (_silence(comment=""), "comment missing"),
        (_silence(created_at=None), "creation timestamp missing"),
        (_silence(created_by=""), "creator information missing"),
        (_silence(matchers=[], created_by=""), "at least one matcher required"),
    ],
)
def test_silence_validate(silence, err):
    with name_validation_scheme(ValidationScheme.LEGACY):
        if err:
            with pytest.raises(ValidationError) as info:
                silence.validate()
            assert err in str(info.value)
        else:
            assert silence.validate() is None