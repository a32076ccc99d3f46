from __future__ import annotations

from evently.storage.base import DocumentStore
from evently.storage.sql import SqlDocumentStore


def create_store(*args, **kwargs):
    from evently.storage.factory import create_store as _create_store

    return _create_store(*args, **kwargs)


__all__ = ["DocumentStore", "SqlDocumentStore", "create_store"]
