"""Field rules shared by every write path.

Field types are pydantic annotated types, so the same constraints back the
documents and the payload schemas. A rule has two phases: the setter
(coerce, trim, lowercase), which runs on every write, and validation
(required, pattern, enum, non-empty list). Attribute assignment on a
document runs both; the store's filter-based update runs them explicitly on
the change mapping.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import AfterValidator, Field, StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from evently.services.error_codes import ErrorCode
from evently.services.exceptions import ValidationError

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]
LowerStr = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True)]
EmailAddress = Annotated[
    str, StringConstraints(strip_whitespace=True, to_lower=True, pattern=EMAIL_PATTERN)
]
StrList = list[str]
NonEmptyStrList = Annotated[list[str], Field(min_length=1)]

_uuid_adapter = TypeAdapter(uuid.UUID)


def to_uuid(value: Any) -> uuid.UUID:
    try:
        return _uuid_adapter.validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationError(
            ErrorCode.FIELD_INVALID.value, f"invalid identifier: {value!r}"
        ) from exc


def enum_value(enum_type: type) -> Any:
    """Annotated enum type that validates against ``enum_type`` and yields the raw value."""
    return Annotated[enum_type, AfterValidator(lambda member: member.value)]


class FieldRule:
    """Setter and validation types for one document field.

    ``messages`` maps a pydantic error type (``string_pattern_mismatch``,
    ``enum``, ``too_short``...) to the error code and message to raise.
    """

    def __init__(
        self,
        label: str,
        setter: Any = TrimmedStr,
        validator: Any = None,
        *,
        required: bool = True,
        required_message: str | None = None,
        messages: Mapping[str, tuple[ErrorCode, str]] | None = None,
    ) -> None:
        self.label = label
        self.required = required
        self.required_message = required_message or f"{label} is required"
        self._setter = TypeAdapter(setter)
        self._validator = TypeAdapter(validator) if validator is not None else None
        self._messages = dict(messages or {})

    def _validate(self, adapter: TypeAdapter, value: Any) -> Any:
        try:
            return adapter.validate_python(value)
        except PydanticValidationError as exc:
            err = exc.errors()[0]
            code, message = self._messages.get(
                err["type"], (ErrorCode.FIELD_INVALID, f"{self.label}: {err['msg']}")
            )
            raise ValidationError(code.value, message) from exc

    def is_blank(self, value: Any) -> bool:
        return value is None or value == ""

    def set(self, value: Any) -> Any:
        if value is None:
            return None
        return self._validate(self._setter, value)

    def check(self, value: Any) -> Any:
        if self.is_blank(value):
            if self.required:
                raise ValidationError(ErrorCode.FIELD_REQUIRED.value, self.required_message)
            return value
        if self._validator is None:
            return value
        return self._validate(self._validator, value)

    def run(self, value: Any, *, setters: bool = True, validate: bool = True) -> Any:
        if setters:
            value = self.set(value)
        if validate:
            value = self.check(value)
        return value
