"""Evently data layer: events, bookings and their write-time rules."""

# Importing these registers the pre-flush / pre-update hooks for the models.
from evently.services import booking_guard, event_normalizer  # noqa: F401

__version__ = "0.1.0"
