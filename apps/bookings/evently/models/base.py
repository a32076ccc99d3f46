from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, ClassVar

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from evently.models.fields import FieldRule
from evently.services.error_codes import ErrorCode
from evently.services.exceptions import ValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class FieldRulesMixin:
    __field_rules__: ClassVar[dict[str, FieldRule]] = {}
    # Writes to these must go through the pre-flush hooks
    __normalized_fields__: ClassVar[frozenset[str]] = frozenset()

    @classmethod
    def apply_field_rules(
        cls,
        changes: Mapping[str, Any],
        *,
        setters: bool = True,
        validate: bool = True,
    ) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in changes.items():
            rule = cls.__field_rules__.get(key)
            out[key] = value if rule is None else rule.run(value, setters=setters, validate=validate)
        return out

    def check_required_fields(self) -> None:
        for key, rule in self.__field_rules__.items():
            if rule.required and rule.is_blank(getattr(self, key)):
                raise ValidationError(
                    ErrorCode.FIELD_REQUIRED.value,
                    rule.required_message,
                )


def get_model(name: str) -> type[Base]:
    """Return the mapped class registered under ``name``."""
    for mapper in Base.registry.mappers:
        if mapper.class_.__name__ == name:
            return mapper.class_
    raise LookupError(f"no model registered as {name!r}")
