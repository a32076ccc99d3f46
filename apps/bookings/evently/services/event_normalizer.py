"""Slug, date and time normalization for events.

Runs before flush, and only for the fields that changed since the last
persisted state: ``title`` drives ``slug``, ``date`` and ``time`` are
rewritten to their canonical forms. Every check runs before any field is
written back, so a failure leaves the document untouched.
"""

from __future__ import annotations

import re
from collections.abc import Collection
from datetime import date as calendar_date
from typing import Any

import structlog
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from evently.core.config import settings
from evently.hooks import FlushContext, integrity_error, pre_flush
from evently.models.event import Event
from evently.services.error_codes import ErrorCode
from evently.services.exceptions import ConflictError, ValidationError

logger = structlog.get_logger(__name__)

_SLUG_DROP_RE = re.compile(r"[^A-Za-z0-9_\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_RE = re.compile(r"([0-1]?[0-9]|2[0-3]):[0-5][0-9]")


def slugify(title: str) -> str:
    slug = title.lower().strip()
    slug = _SLUG_DROP_RE.sub("", slug)
    slug = _WHITESPACE_RE.sub("-", slug)
    return _HYPHENS_RE.sub("-", slug)


def normalize_date(raw: Any) -> str:
    if not isinstance(raw, str) or not DATE_RE.fullmatch(raw):
        raise ValidationError(
            ErrorCode.INVALID_DATE_FORMAT.value,
            "Date must be in the format YYYY-MM-DD; parsing uses the local calendar date.",
        )

    year, month, day = (int(part) for part in raw.split("-"))
    try:
        # Two-digit years read as 19xx on the calendar, so 0000-0099 never round-trip
        if year < 100:
            raise ValueError(f"year {year} out of range")
        parsed = calendar_date(year, month, day)
    except ValueError as exc:
        raise ValidationError(
            ErrorCode.INVALID_CALENDAR_DATE.value, "Date is not a valid calendar date."
        ) from exc
    return parsed.isoformat()


def normalize_time(raw: Any) -> str:
    if not isinstance(raw, str) or not TIME_RE.fullmatch(raw):
        raise ValidationError(
            ErrorCode.INVALID_TIME_FORMAT.value,
            "Time must be in HH:MM format (e.g., 14:30 or 09:00)",
        )
    hours, minutes = raw.split(":")
    return f"{int(hours):02d}:{minutes}"


def _slug_taken(session: Session, slug: str, exclude_id: Any) -> bool:
    stmt = select(Event.id).where(Event.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Event.id != exclude_id)
    with session.no_autoflush:
        return session.scalar(stmt.limit(1)) is not None


def unique_slug(
    session: Session,
    title: str,
    *,
    exclude_id: Any = None,
    claimed: Collection[str] = (),
    max_attempts: int | None = None,
) -> str:
    """Return the first free slug among ``base``, ``base-1``, ``base-2``...

    ``claimed`` holds slugs already taken by other documents in the same
    flush, which the database cannot see yet.
    """
    base = slugify(title)
    if not base:
        raise ValidationError(
            ErrorCode.EMPTY_SLUG.value, "Title must contain at least one letter or digit"
        )

    attempts = max_attempts or settings.slug_max_attempts
    candidate = base
    for counter in range(1, attempts + 1):
        if candidate not in claimed and not _slug_taken(session, candidate, exclude_id):
            return candidate
        candidate = f"{base}-{counter}"

    logger.error("event_slug_exhausted", base=base, attempts=attempts)
    raise ConflictError(
        ErrorCode.SLUG_ATTEMPTS_EXHAUSTED.value,
        f"could not find a free slug for {base!r} after {attempts} attempts",
    )


def _changed(event: Event, key: str) -> bool:
    return inspect(event).attrs[key].history.has_changes()


@pre_flush(Event)
def normalize_event(session: Session, event: Event, ctx: FlushContext) -> None:
    updates: dict[str, str] = {}

    if _changed(event, "title"):
        updates["slug"] = unique_slug(
            session, event.title, exclude_id=event.id, claimed=ctx.claimed_slugs
        )
    if _changed(event, "date"):
        updates["date"] = normalize_date(event.date)
    if _changed(event, "time"):
        updates["time"] = normalize_time(event.time)

    for key, value in updates.items():
        setattr(event, key, value)

    if "slug" in updates:
        ctx.claimed_slugs.add(event.slug)
        logger.info("event_slug_assigned", event_id=str(event.id), slug=event.slug)


@integrity_error(Event)
def slug_conflict(session: Session, exc: IntegrityError, values) -> ConflictError:
    logger.warning("event_write_conflict", slug=values.get("slug"), error=str(exc.orig))
    return ConflictError(
        ErrorCode.DUPLICATE_SLUG.value, "an event with this slug already exists"
    )
