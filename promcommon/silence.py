"""Silences and the label matchers they are built from."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime

from promcommon.names import ValidationError, is_valid_label_name, is_valid_label_value


def _quote(text: str) -> str:
    return json.dumps(text)


@dataclass
class Matcher:
    """Matches the value of one label, literally or by regular expression."""

    name: str
    value: str
    is_regex: bool = False

    def validate(self) -> None:
        """Raise ValidationError if any field has an invalid value."""
        if not is_valid_label_name(self.name):
            raise ValidationError(f"invalid name {_quote(self.name)}")
        if self.is_regex:
            try:
                re.compile(self.value)
            except re.error as err:
                raise ValidationError(
                    f"invalid regular expression {_quote(self.value)}"
                ) from err
        elif not is_valid_label_value(self.value) or len(self.value) == 0:
            raise ValidationError(f"invalid value {_quote(self.value)}")

    @classmethod
    def from_json(cls, text: str | bytes) -> Matcher:
        """Decode a matcher from a JSON object."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValidationError("matcher must be a JSON object")
        name = data.get("name", "")
        value = data.get("value", "")
        is_regex = data.get("isRegex", False)
        if not isinstance(name, str) or not isinstance(value, str):
            raise ValidationError("matcher name and value must be strings")
        if not isinstance(is_regex, bool):
            raise ValidationError("matcher isRegex must be a boolean")
        if "name" in data and not is_valid_label_name(name):
            raise ValidationError(f"{_quote(name)} is not a valid label name")
        if not name:
            raise ValidationError("label name in matcher must not be empty")
        if is_regex:
            try:
                re.compile(value)
            except re.error as err:
                raise ValidationError(str(err)) from err
        return cls(name=name, value=value, is_regex=is_regex)


@dataclass
class Silence:
    """A silence: matchers, an active interval and who created it and why."""

    matchers: list[Matcher] = field(default_factory=list)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    created_at: datetime | None = None
    created_by: str = ""
    comment: str = ""
    id: int = 0

    def validate(self) -> None:
        """Raise ValidationError if any field has an invalid value."""
        if not self.matchers:
            raise ValidationError("at least one matcher required")
        for matcher in self.matchers:
            try:
                matcher.validate()
            except ValidationError as err:
                raise ValidationError(f"invalid matcher: {err}") from err
        if self.starts_at is None:
            raise ValidationError("start time missing")
        if self.ends_at is None:
            raise ValidationError("end time missing")
        if self.ends_at < self.starts_at:
            raise ValidationError("start time must be before end time")
        if self.created_by == "":
            raise ValidationError("creator information missing")
        if self.comment == "":
            raise ValidationError("comment missing")
        if self.created_at is None:
            raise ValidationError("creation timestamp missing")