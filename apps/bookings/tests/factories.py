from __future__ import annotations


def event_payload(**overrides):
    payload = {
        "title": "Test Event",
        "description": "Test Description",
        "overview": "Test Overview",
        "image": "test.jpg",
        "venue": "Test Venue",
        "location": "Test Location",
        "date": "2025-01-01",
        "time": "10:00",
        "mode": "online",
        "audience": "Test Audience",
        "agenda": ["Test Agenda"],
        "organizer": "Test Organizer",
        "tags": ["Test Tag"],
    }
    payload.update(overrides)
    return payload
