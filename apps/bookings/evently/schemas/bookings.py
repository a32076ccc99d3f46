from __future__ import annotations

from datetime import datetime
from uuid import UUID

from evently.models.fields import EmailAddress
from evently.schemas.base import SchemaBase


class BookingCreate(SchemaBase):
    event_id: UUID
    email: EmailAddress


class BookingUpdate(SchemaBase):
    event_id: UUID | None = None
    email: EmailAddress | None = None


class BookingOut(SchemaBase):
    id: UUID
    event_id: UUID
    email: str
    created_at: datetime
    updated_at: datetime
