from evently.models.base import Base, get_model
from evently.models.booking import Booking
from evently.models.event import Event, EventMode

__all__ = ["Base", "Event", "EventMode", "Booking", "get_model"]
