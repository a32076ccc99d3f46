from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import structlog
from sqlalchemy import Uuid, inspect, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from evently.hooks import UpdateOptions, run_pre_update_hooks, translate_integrity_error
from evently.models.base import Base
from evently.models.fields import to_uuid
from evently.services.error_codes import ErrorCode
from evently.services.exceptions import ConflictError, ValidationError
from evently.storage.base import DocumentStore

logger = structlog.get_logger(__name__)

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})


class SqlDocumentStore(DocumentStore):
    """DocumentStore over one SQLAlchemy model; each write is its own transaction."""

    def __init__(self, session: Session, model: type[Base]) -> None:
        self._session = session
        self._model = model
        self._table = model.__table__

    @property
    def model(self) -> type[Base]:
        return self._model

    # -- filters -------------------------------------------------------

    def _column_name(self, key: str) -> str:
        name = "id" if key == "_id" else key
        if name not in self._table.c:
            raise ValidationError(ErrorCode.FIELD_INVALID.value, f"unknown field: {key}")
        return name

    def _bind_value(self, name: str, value: Any, setters: bool) -> Any:
        if setters:
            rule = self._model.__field_rules__.get(name)
            if rule is not None:
                value = rule.set(value)
        if value is not None and isinstance(self._table.c[name].type, Uuid):
            value = to_uuid(value)
        return value

    def _where(self, filter: Mapping[str, Any] | None, *, setters: bool = False) -> list:
        clauses = []
        for key, cond in (filter or {}).items():
            name = self._column_name(key)
            column = getattr(self._model, name)
            if not isinstance(cond, Mapping):
                clauses.append(column == self._bind_value(name, cond, setters))
                continue
            for op, value in cond.items():
                if op == "$eq":
                    clauses.append(column == self._bind_value(name, value, setters))
                elif op == "$ne":
                    clauses.append(column != self._bind_value(name, value, setters))
                elif op == "$in":
                    clauses.append(column.in_([self._bind_value(name, v, setters) for v in value]))
                elif op == "$nin":
                    clauses.append(column.not_in([self._bind_value(name, v, setters) for v in value]))
                else:
                    raise ValidationError(
                        ErrorCode.FIELD_INVALID.value, f"unsupported filter operator: {op}"
                    )
        return clauses

    # -- writes --------------------------------------------------------

    def _check_writable(self, fields: Mapping[str, Any]) -> None:
        for key in fields:
            if key in SYSTEM_FIELDS:
                raise ValidationError(ErrorCode.FIELD_INVALID.value, f"{key} cannot be written")
            self._column_name(key)

    def _values_of(self, document: Any) -> dict[str, Any]:
        return {attr.key: getattr(document, attr.key) for attr in inspect(self._model).column_attrs}

    @staticmethod
    def _flatten(changes: Mapping[str, Any]) -> dict[str, Any]:
        """Merge top-level fields and ``$set`` into the values that get written."""
        top: dict[str, Any] = {}
        nested: Mapping[str, Any] = {}
        for key, value in changes.items():
            if key == "$set":
                if not isinstance(value, Mapping):
                    raise ValidationError(
                        ErrorCode.UNSUPPORTED_UPDATE_OPERATOR.value, "$set must be a mapping"
                    )
                nested = value
            elif key.startswith("$"):
                raise ValidationError(
                    ErrorCode.UNSUPPORTED_UPDATE_OPERATOR.value,
                    f"unsupported update operator: {key}",
                )
            else:
                top[key] = value

        for key, value in nested.items():
            if key in top and top[key] != value:
                raise ValidationError(
                    ErrorCode.FIELD_INVALID.value,
                    f"{key} is set both directly and under $set with different values",
                )
        return {**top, **nested}

    @contextmanager
    def _writing(self, values: Mapping[str, Any]) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            err = translate_integrity_error(self._model, self._session, exc, values)
            if err is None:
                err = ConflictError(
                    ErrorCode.INTEGRITY_CONFLICT.value, "write rejected by a unique index"
                )
            raise err from exc
        except Exception:
            self._session.rollback()
            raise

    def create(self, fields: Mapping[str, Any]) -> Any:
        self._check_writable(fields)
        document = self._model(**fields)
        with self._writing(fields):
            self._session.add(document)
        logger.info("document_created", collection=self._table.name, id=str(document.id))
        return document

    def save(self, document: Any) -> Any:
        values = self._values_of(document)
        with self._writing(values):
            self._session.add(document)
        logger.info("document_saved", collection=self._table.name, id=str(document.id))
        return document

    def update_by_filter(
        self,
        filter: Mapping[str, Any],
        changes: Mapping[str, Any],
        *,
        apply_setters: bool = True,
        validate: bool = True,
    ) -> Any | None:
        options = UpdateOptions(apply_setters=apply_setters, validate=validate)
        try:
            values = self._flatten(changes)
            run_pre_update_hooks(self._model, self._session, filter, values, options)
            if not options.apply_setters:
                # Setters are part of every write path
                logger.warning("update_setters_forced", collection=self._table.name)
                options.apply_setters = True
            self._check_writable(values)
            values = self._model.apply_field_rules(
                values, setters=options.apply_setters, validate=options.validate
            )
            stmt = select(self._model).where(*self._where(filter, setters=options.apply_setters))
            target = self._session.scalars(stmt.limit(1)).first()
        except Exception:
            self._session.rollback()
            raise

        if target is None:
            return None
        if not values:
            return target

        # Normalized fields need the pre-flush hooks, which only see assignments.
        if values.keys() & self._model.__normalized_fields__:
            try:
                for key, value in values.items():
                    setattr(target, key, value)
            except Exception:
                self._session.rollback()
                raise
            return self.save(target)

        with self._writing({**self._values_of(target), **values}):
            self._session.execute(
                update(self._model).where(self._model.id == target.id).values(**values),
                execution_options={"synchronize_session": False},
            )
        self._session.refresh(target)
        logger.info(
            "document_updated",
            collection=self._table.name,
            id=str(target.id),
            fields=sorted(values),
        )
        return target

    # -- reads ---------------------------------------------------------

    def find_one(self, filter: Mapping[str, Any]) -> Any | None:
        stmt = select(self._model).where(*self._where(filter)).limit(1)
        return self._session.scalars(stmt).first()

    def find_by_id(self, id: Any) -> Any | None:
        try:
            key = to_uuid(id)
        except ValidationError:
            return None
        return self._session.get(self._model, key)

    def find(self, filter: Mapping[str, Any] | None = None) -> list[Any]:
        stmt = select(self._model).where(*self._where(filter)).order_by(self._model.created_at)
        return list(self._session.scalars(stmt).all())

    def delete_by_id(self, id: Any) -> bool:
        document = self.find_by_id(id)
        if document is None:
            return False
        with self._writing(self._values_of(document)):
            self._session.delete(document)
        logger.info("document_deleted", collection=self._table.name, id=str(document.id))
        return True
