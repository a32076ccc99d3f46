from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from evently.services.error_codes import ErrorCode
from evently.services.exceptions import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


def _describe(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ())) or "payload"
    return f"{field}: {err.get('msg', 'invalid value')}"


def parse_payload(schema: type[SchemaT], data: SchemaT | Mapping[str, Any]) -> SchemaT:
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(ErrorCode.FIELD_INVALID.value, _describe(exc)) from exc
