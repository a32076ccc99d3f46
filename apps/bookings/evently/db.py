"""Process-wide database connection.

``connect_db`` memoizes one engine per process. Only one connection attempt
runs at a time; a failed attempt memoizes nothing, so the next call tries
again instead of replaying the failure.
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from typing import Any

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from evently.core.config import settings
from evently.models import Base
from evently.services.error_codes import ErrorCode
from evently.services.exceptions import ConnectionError

logger = structlog.get_logger(__name__)

SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, future=True)

_engine: Engine | None = None
_lock = threading.Lock()


def _engine_args(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # One shared connection, so an in-memory database survives across sessions
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_pre_ping": True, "pool_recycle": 1800}


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def connect_db(url: str | None = None) -> Engine:
    global _engine
    if _engine is not None:
        return _engine

    with _lock:
        if _engine is not None:
            return _engine

        db_url = url or settings.database_url
        engine: Engine | None = None
        try:
            engine = create_engine(
                db_url,
                echo=settings.database_echo,
                future=True,
                **_engine_args(db_url),
            )
            if engine.dialect.name == "sqlite":
                event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, ImportError) as exc:
            if engine is not None:
                engine.dispose()
            logger.error("db_connect_failed", url=_safe_url(db_url), error=str(exc))
            raise ConnectionError(
                ErrorCode.DB_CONNECTION_FAILED.value, f"could not connect to database: {exc}"
            ) from exc

        SessionLocal.configure(bind=engine)
        _engine = engine
        logger.info("db_connected", url=_safe_url(db_url), dialect=engine.dialect.name)
        return engine


def _safe_url(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except SQLAlchemyError:
        return "<invalid url>"


def reset_db_connection() -> None:
    global _engine
    with _lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        SessionLocal.configure(bind=None)


def init_db() -> None:
    """Create all tables and indexes that do not exist yet."""
    Base.metadata.create_all(connect_db())


def get_db() -> Generator[Session, None, None]:
    connect_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
