from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from evently.models.event import EventMode
from evently.models.fields import NonEmptyStrList, TrimmedStr, enum_value
from evently.schemas.base import SchemaBase

ModeValue = enum_value(EventMode)


class EventCreate(SchemaBase):
    title: TrimmedStr = Field(min_length=1)
    description: TrimmedStr
    overview: TrimmedStr
    image: str
    venue: TrimmedStr
    location: TrimmedStr
    date: str = Field(description="YYYY-MM-DD")
    time: str = Field(description="H:MM or HH:MM, 24-hour")
    mode: ModeValue
    audience: TrimmedStr
    agenda: NonEmptyStrList
    organizer: TrimmedStr
    tags: NonEmptyStrList


class EventUpdate(SchemaBase):
    title: TrimmedStr | None = Field(default=None, min_length=1)
    description: TrimmedStr | None = None
    overview: TrimmedStr | None = None
    image: str | None = None
    venue: TrimmedStr | None = None
    location: TrimmedStr | None = None
    date: str | None = None
    time: str | None = None
    mode: ModeValue | None = None
    audience: TrimmedStr | None = None
    agenda: NonEmptyStrList | None = None
    organizer: TrimmedStr | None = None
    tags: NonEmptyStrList | None = None


class EventOut(SchemaBase):
    id: UUID
    title: str
    slug: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime
