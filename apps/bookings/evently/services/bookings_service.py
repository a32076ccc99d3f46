from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from evently.models import Booking, Event
from evently.schemas import BookingCreate, BookingUpdate, parse_payload
from evently.services.error_codes import ErrorCode
from evently.services.exceptions import NotFoundError
from evently.storage import create_store


def _require_event(db: Session, event_id: Any) -> Event:
    event = create_store(db, Event).find_by_id(event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def create_booking(db: Session, payload: BookingCreate | Mapping[str, Any]) -> Booking:
    data = parse_payload(BookingCreate, payload)
    return create_store(db, Booking).create(data.model_dump())


def update_booking(
    db: Session,
    filter: Mapping[str, Any],
    changes: BookingUpdate | Mapping[str, Any],
) -> Booking:
    """Filter-based update of the first matching booking.

    changes is either a BookingUpdate or a raw change mapping, which may
    nest its fields under ``$set``.
    """
    if isinstance(changes, BookingUpdate):
        changes = changes.model_dump(exclude_unset=True)

    booking = create_store(db, Booking).update_by_filter(filter, changes)
    if not booking:
        raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND.value, "booking not found")
    return booking


def get_booking(db: Session, booking_id: Any) -> Booking:
    booking = create_store(db, Booking).find_by_id(booking_id)
    if not booking:
        raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND.value, "booking not found")
    return booking


def cancel_booking(db: Session, booking_id: Any) -> None:
    if not create_store(db, Booking).delete_by_id(booking_id):
        raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND.value, "booking not found")


def list_bookings_for_event(db: Session, event_id: Any) -> list[Booking]:
    event = _require_event(db, event_id)
    return create_store(db, Booking).find({"event_id": event.id})


def count_bookings_for_event(db: Session, event_id: Any) -> int:
    event = _require_event(db, event_id)
    return int(
        db.scalar(
            select(func.count())
            .select_from(Booking)
            .where(Booking.event_id == event.id)
        )
        or 0
    )
