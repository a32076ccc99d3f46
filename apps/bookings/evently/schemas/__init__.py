from evently.schemas.base import SchemaBase, parse_payload
from evently.schemas.bookings import BookingCreate, BookingOut, BookingUpdate
from evently.schemas.events import EventCreate, EventOut, EventUpdate

__all__ = [
    "SchemaBase",
    "parse_payload",
    "EventCreate",
    "EventUpdate",
    "EventOut",
    "BookingCreate",
    "BookingUpdate",
    "BookingOut",
]
