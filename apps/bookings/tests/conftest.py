from __future__ import annotations

import os

import pytest

# Settings are read at import time, so the test database must be set first
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from evently.core.logging import configure_logging  # noqa: E402
from evently.db import SessionLocal, connect_db, init_db, reset_db_connection  # noqa: E402
from evently.models import Base, Event  # noqa: E402
from evently.storage import create_store  # noqa: E402
from tests.factories import event_payload  # noqa: E402

configure_logging()


@pytest.fixture(autouse=True)
def engine():
    # Fresh schema for each test
    reset_db_connection()
    engine = connect_db()
    init_db()
    yield engine
    Base.metadata.drop_all(engine)
    reset_db_connection()


@pytest.fixture
def db_session(engine):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def event_store(db_session):
    return create_store(db_session, Event)


@pytest.fixture
def make_event(event_store):
    def _make(**overrides) -> Event:
        return event_store.create(event_payload(**overrides))

    return _make
