from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from evently.models import Event
from evently.schemas import EventCreate, EventUpdate, parse_payload
from evently.services.error_codes import ErrorCode
from evently.services.exceptions import NotFoundError, ServiceError
from evently.storage import create_store


def _require_event(db: Session, event_id: Any) -> Event:
    event = create_store(db, Event).find_by_id(event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def create_event(db: Session, payload: EventCreate | Mapping[str, Any]) -> Event:
    data = parse_payload(EventCreate, payload)
    return create_store(db, Event).create(data.model_dump())


def update_event(db: Session, event_id: Any, patch: EventUpdate | Mapping[str, Any]) -> Event:
    """Whole-document update: load, assign, save.

    Assignment runs the field setters, and the save runs the normalizer for
    whichever of title/date/time actually changed.
    """
    event = _require_event(db, event_id)
    patch_data = parse_payload(EventUpdate, patch).model_dump(exclude_unset=True)

    try:
        for key, value in patch_data.items():
            setattr(event, key, value)
    except ServiceError:
        # Drop the half-applied assignments
        db.rollback()
        raise

    return create_store(db, Event).save(event)


def get_event(db: Session, event_id: Any) -> Event:
    return _require_event(db, event_id)


def get_event_by_slug(db: Session, slug: str) -> Event:
    event = create_store(db, Event).find_one({"slug": slug.strip().lower()})
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def list_events(db: Session, mode: str | None = None) -> list[Event]:
    return create_store(db, Event).find({"mode": mode} if mode else None)


def delete_event(db: Session, event_id: Any) -> None:
    """Delete an event; its bookings go with it through the foreign key."""
    if not create_store(db, Event).delete_by_id(event_id):
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
