from __future__ import annotations

from sqlalchemy.orm import Session

from evently.core.config import settings
from evently.models.base import Base
from evently.storage.base import DocumentStore
from evently.storage.sql import SqlDocumentStore


def create_store(
    session: Session,
    model: type[Base],
    backend: str | None = None,
) -> DocumentStore:
    selected_backend = (backend or settings.store_backend).strip().lower()
    if selected_backend == "sql":
        return SqlDocumentStore(session, model)
    raise ValueError(f"unsupported store backend: {selected_backend}")
