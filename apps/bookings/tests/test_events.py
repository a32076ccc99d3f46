from __future__ import annotations

import pytest
from sqlalchemy import func, select

from evently.models import Event
from evently.services import event_normalizer
from evently.services.error_codes import ErrorCode
from evently.services.event_normalizer import unique_slug
from evently.services.exceptions import ConflictError, ValidationError
from tests.factories import event_payload


def _event_count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(Event))


def test_create_event_derives_slug_from_title(make_event):
    event = make_event(title="My Test Event!!")
    assert event.slug == "my-test-event"


def test_identical_titles_get_numbered_slugs(make_event):
    first = make_event(title="My Test Event!!")
    second = make_event(title="My Test Event!!")
    third = make_event(title="My Test Event!!")
    assert [first.slug, second.slug, third.slug] == [
        "my-test-event",
        "my-test-event-1",
        "my-test-event-2",
    ]


def test_different_titles_with_same_base_slug_stay_distinct(make_event):
    first = make_event(title="Launch Party")
    second = make_event(title="launch   party!")
    assert first.slug == "launch-party"
    assert second.slug == "launch-party-1"


def test_resave_without_title_change_keeps_slug(db_session, event_store, make_event):
    make_event(title="Data Day")
    event = make_event(title="Data Day")
    assert event.slug == "data-day-1"

    event.venue = "Main Hall"
    event_store.save(event)
    db_session.refresh(event)
    assert event.slug == "data-day-1"
    assert event.venue == "Main Hall"


def test_reassigning_same_title_keeps_slug(event_store, make_event):
    make_event(title="Data Day")
    event = make_event(title="Data Day")
    event.title = "  Data Day  "
    event_store.save(event)
    assert event.slug == "data-day-1"


def test_title_change_regenerates_slug_excluding_itself(event_store, make_event):
    event = make_event(title="Hello World")
    event.title = "Hello World!"
    event_store.save(event)
    assert event.slug == "hello-world"

    event.title = "Goodbye World"
    event_store.save(event)
    assert event.slug == "goodbye-world"


def test_title_change_avoids_other_events_slug(event_store, make_event):
    make_event(title="Meetup")
    event = make_event(title="Something Else")
    event.title = "Meetup"
    event_store.save(event)
    assert event.slug == "meetup-1"


def test_events_added_in_one_flush_get_distinct_slugs(db_session):
    db_session.add_all([Event(**event_payload(title="Twin")), Event(**event_payload(title="Twin"))])
    db_session.commit()
    slugs = sorted(db_session.scalars(select(Event.slug)).all())
    assert slugs == ["twin", "twin-1"]


def test_title_without_word_characters_is_rejected(db_session, make_event):
    with pytest.raises(ValidationError) as exc_info:
        make_event(title="!!!")
    assert exc_info.value.code == ErrorCode.EMPTY_SLUG.value
    assert _event_count(db_session) == 0


def test_unique_slug_gives_up_after_max_attempts(db_session, make_event):
    make_event(title="Crowded")
    make_event(title="Crowded")
    with pytest.raises(ConflictError) as exc_info:
        unique_slug(db_session, "Crowded", max_attempts=2)
    assert exc_info.value.code == ErrorCode.SLUG_ATTEMPTS_EXHAUSTED.value
    assert unique_slug(db_session, "Crowded", max_attempts=3) == "crowded-2"


def test_duplicate_slug_from_storage_becomes_conflict(db_session, make_event, monkeypatch):
    make_event(title="Race")
    # Simulate a concurrent writer that claimed the slug after our pre-check
    monkeypatch.setattr(event_normalizer, "unique_slug", lambda *args, **kwargs: "race")

    with pytest.raises(ConflictError) as exc_info:
        make_event(title="Race")
    assert exc_info.value.code == ErrorCode.DUPLICATE_SLUG.value
    assert _event_count(db_session) == 1


def test_date_and_time_are_normalized_on_create(make_event):
    event = make_event(date="2025-07-04", time="9:30")
    assert event.date == "2025-07-04"
    assert event.time == "09:30"


def test_invalid_calendar_date_aborts_create(db_session, make_event):
    with pytest.raises(ValidationError) as exc_info:
        make_event(date="2025-02-30")
    assert exc_info.value.code == ErrorCode.INVALID_CALENDAR_DATE.value
    assert _event_count(db_session) == 0


def test_unpadded_date_aborts_create(db_session, make_event):
    with pytest.raises(ValidationError) as exc_info:
        make_event(date="2025-1-5")
    assert exc_info.value.code == ErrorCode.INVALID_DATE_FORMAT.value
    assert _event_count(db_session) == 0


def test_invalid_time_aborts_create(db_session, make_event):
    with pytest.raises(ValidationError):
        make_event(time="24:00")
    assert _event_count(db_session) == 0


def test_failed_update_commits_no_fields(db_session, event_store, make_event):
    event = make_event(title="Atomic", date="2025-05-01", time="10:00")
    event.title = "Atomic Renamed"
    event.date = "2025-05-02"
    event.time = "9:5"

    with pytest.raises(ValidationError):
        event_store.save(event)

    stored = event_store.find_by_id(event.id)
    db_session.refresh(stored)
    assert stored.title == "Atomic"
    assert stored.slug == "atomic"
    assert stored.date == "2025-05-01"
    assert stored.time == "10:00"


def test_string_fields_are_trimmed(make_event):
    event = make_event(title="  Spaced Out  ", venue="  Hall A ", organizer=" Org ")
    assert event.title == "Spaced Out"
    assert event.venue == "Hall A"
    assert event.organizer == "Org"


def test_missing_required_field_is_rejected(db_session, event_store):
    payload = event_payload()
    del payload["overview"]
    with pytest.raises(ValidationError) as exc_info:
        event_store.create(payload)
    assert exc_info.value.code == ErrorCode.FIELD_REQUIRED.value
    assert exc_info.value.message == "Overview is required"
    assert _event_count(db_session) == 0


def test_blank_required_field_is_rejected(make_event):
    with pytest.raises(ValidationError) as exc_info:
        make_event(venue="   ")
    assert exc_info.value.message == "Venue is required"


def test_invalid_mode_is_rejected(make_event):
    with pytest.raises(ValidationError) as exc_info:
        make_event(mode="in-person")
    assert exc_info.value.code == ErrorCode.INVALID_MODE.value
    assert exc_info.value.message == "Mode must be online, offline, or hybrid"


def test_empty_agenda_is_rejected(make_event):
    with pytest.raises(ValidationError) as exc_info:
        make_event(agenda=[])
    assert exc_info.value.message == "Agenda must have at least one item"


def test_empty_tags_are_rejected(make_event):
    with pytest.raises(ValidationError) as exc_info:
        make_event(tags=[])
    assert exc_info.value.code == ErrorCode.EMPTY_LIST.value


def test_filter_update_of_title_runs_normalizer(event_store, make_event):
    make_event(title="Taken Name")
    event = make_event(title="Original")

    updated = event_store.update_by_filter(
        {"slug": "original"}, {"$set": {"title": "Taken Name", "time": "8:15"}}
    )
    assert updated.id == event.id
    assert updated.slug == "taken-name-1"
    assert updated.time == "08:15"


def test_filter_update_rejects_invalid_date(event_store, make_event):
    make_event(title="Dated", date="2025-06-01")
    with pytest.raises(ValidationError):
        event_store.update_by_filter({"slug": "dated"}, {"date": "2025-06-31"})
    assert event_store.find_one({"slug": "dated"}).date == "2025-06-01"


def test_filter_update_runs_setters_by_default(event_store, make_event):
    make_event(title="Setters")
    updated = event_store.update_by_filter({"slug": "setters"}, {"venue": "  Annex  "})
    assert updated.venue == "Annex"


def test_filter_update_runs_setters_even_when_turned_off(event_store, make_event):
    make_event(title="Raw")
    updated = event_store.update_by_filter(
        {"slug": "raw"}, {"venue": "  Annex  "}, apply_setters=False
    )
    assert updated.venue == "Annex"


def test_failed_filter_update_leaves_nothing_pending(event_store, make_event):
    make_event(title="Partial")
    with pytest.raises(ValidationError):
        event_store.update_by_filter(
            {"slug": "partial"}, {"title": "Renamed", "venue": ""}, validate=False
        )

    # An unrelated write must not commit the rejected assignments
    make_event(title="Other")
    stored = event_store.find_one({"slug": "partial"})
    assert stored.title == "Partial"
    assert stored.venue == "Test Venue"
    assert event_store.find_one({"slug": "renamed"}) is None


def test_filter_update_with_no_match_returns_none(event_store):
    assert event_store.update_by_filter({"slug": "missing"}, {"venue": "X"}) is None


def test_filter_update_rejects_unknown_operator(event_store, make_event):
    make_event(title="Ops")
    with pytest.raises(ValidationError) as exc_info:
        event_store.update_by_filter({"slug": "ops"}, {"$inc": {"venue": 1}})
    assert exc_info.value.code == ErrorCode.UNSUPPORTED_UPDATE_OPERATOR.value


def test_find_one_supports_ne_operator(event_store, make_event):
    first = make_event(title="Pair")
    second = make_event(title="Pair")
    found = event_store.find_one({"title": "Pair", "_id": {"$ne": first.id}})
    assert found.id == second.id
