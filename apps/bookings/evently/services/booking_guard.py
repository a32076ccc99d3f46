"""Referential integrity for bookings.

Every write path that can change ``Booking.event_id`` checks that the event
exists first: create and whole-document save through the pre-flush hook,
filter-based updates through the pre-update hook, which sees the values the
update will actually write. That path also forces the field setters and
validation on, so ``email`` is trimmed, lowercased and checked no matter
how the update was expressed.

The existence check is a read before the write in the same transaction, not
a lock. An event deleted in between is caught by the foreign key where the
database enforces it, and surfaces as the same ``ReferenceError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from evently.hooks import FlushContext, UpdateOptions, integrity_error, pre_flush, pre_update
from evently.models.booking import Booking
from evently.models.event import Event
from evently.models.fields import to_uuid
from evently.services.error_codes import ErrorCode
from evently.services.exceptions import ConflictError, ReferenceError, ServiceError

logger = structlog.get_logger(__name__)


def ensure_event_exists(session: Session, event_id: Any) -> Event:
    event = None
    if event_id is not None:
        with session.no_autoflush:
            event = session.get(Event, to_uuid(event_id))
    if event is None:
        logger.warning("booking_event_missing", event_id=str(event_id))
        raise ReferenceError(ErrorCode.EVENT_NOT_FOUND.value, "event not found", event_id=event_id)
    return event


@pre_flush(Booking)
def guard_booking(session: Session, booking: Booking, ctx: FlushContext) -> None:
    if inspect(booking).attrs.event_id.history.has_changes():
        ensure_event_exists(session, booking.event_id)


@pre_update(Booking)
def guard_booking_update(
    session: Session,
    filter: Mapping[str, Any],
    values: Mapping[str, Any],
    options: UpdateOptions,
) -> None:
    if not (options.apply_setters and options.validate):
        logger.warning("booking_update_rules_forced", filter=str(dict(filter)))
        options.apply_setters = True
        options.validate = True

    if "event_id" in values:
        ensure_event_exists(session, values["event_id"])


@integrity_error(Booking)
def booking_conflict(session: Session, exc: IntegrityError, values) -> ServiceError:
    event_id = values.get("event_id")
    if event_id is not None and session.get(Event, to_uuid(event_id)) is None:
        logger.warning("booking_event_vanished", event_id=str(event_id))
        return ReferenceError(ErrorCode.EVENT_NOT_FOUND.value, "event not found", event_id=event_id)

    logger.warning("booking_write_conflict", event_id=str(event_id), error=str(exc.orig))
    return ConflictError(
        ErrorCode.DUPLICATE_BOOKING.value, "a booking for this email and event already exists"
    )
