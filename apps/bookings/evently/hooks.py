"""Pre-persistence hook registry.

Three kinds of hooks, registered per model class:

- ``pre_flush``: runs for every new or dirty document of the model inside
  ``Session.before_flush``. Covers create and whole-document save.
- ``pre_update``: runs before a filter-based update is executed by the
  store. Receives the merged field values (top level and ``$set``) that the
  update will write, before the setters run, and may adjust ``UpdateOptions``.
- ``integrity_error``: turns a database ``IntegrityError`` on a write of the
  model into a service error.

Hooks raise to abort the write.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from evently.models.base import FieldRulesMixin
from evently.services.exceptions import ServiceError

PreFlushHook = Callable[[Session, Any, "FlushContext"], None]
PreUpdateHook = Callable[[Session, Mapping[str, Any], Mapping[str, Any], "UpdateOptions"], None]
IntegrityErrorHook = Callable[[Session, IntegrityError, Mapping[str, Any]], ServiceError | None]

_pre_flush: dict[type, list[PreFlushHook]] = defaultdict(list)
_pre_update: dict[type, list[PreUpdateHook]] = defaultdict(list)
_integrity_error: dict[type, list[IntegrityErrorHook]] = defaultdict(list)


@dataclass
class UpdateOptions:
    apply_setters: bool = True
    validate: bool = True


@dataclass
class FlushContext:
    """State shared by the pre-flush hooks of a single flush."""

    claimed_slugs: set[str]


def _register(registry: dict[type, list], model: type) -> Callable:
    def decorator(fn):
        if fn not in registry[model]:
            registry[model].append(fn)
        return fn

    return decorator


def pre_flush(model: type) -> Callable[[PreFlushHook], PreFlushHook]:
    return _register(_pre_flush, model)


def pre_update(model: type) -> Callable[[PreUpdateHook], PreUpdateHook]:
    return _register(_pre_update, model)


def integrity_error(model: type) -> Callable[[IntegrityErrorHook], IntegrityErrorHook]:
    return _register(_integrity_error, model)


def run_pre_update_hooks(
    model: type,
    session: Session,
    filter: Mapping[str, Any],
    values: Mapping[str, Any],
    options: UpdateOptions,
) -> None:
    for hook in _pre_update.get(model, ()):
        hook(session, filter, values, options)


def translate_integrity_error(
    model: type,
    session: Session,
    exc: IntegrityError,
    values: Mapping[str, Any],
) -> ServiceError | None:
    for hook in _integrity_error.get(model, ()):
        err = hook(session, exc, values)
        if err is not None:
            return err
    return None


@event.listens_for(Session, "before_flush")
def _run_pre_flush_hooks(session: Session, flush_context, instances) -> None:
    ctx = FlushContext(claimed_slugs=set())
    new = list(session.new)
    for obj in new + [o for o in session.dirty if session.is_modified(o)]:
        if obj in new and isinstance(obj, FieldRulesMixin):
            obj.check_required_fields()
        for hook in _pre_flush.get(type(obj), ()):
            hook(session, obj, ctx)
