from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class DocumentStore(ABC):
    """Create/find/update access to one collection of documents.

    Filters are mappings of field -> value; a value may also be an operator
    mapping (``{"$ne": value}``, ``{"$in": [...]}``). ``_id`` is accepted as
    an alias of ``id``.
    """

    @abstractmethod
    def create(self, fields: Mapping[str, Any]) -> Any:
        """Insert a new document built from fields and return it."""

    @abstractmethod
    def find_one(self, filter: Mapping[str, Any]) -> Any | None:
        """Return the first document matching filter, or None."""

    @abstractmethod
    def find_by_id(self, id: Any) -> Any | None:
        """Return the document with this id, or None."""

    @abstractmethod
    def find(self, filter: Mapping[str, Any] | None = None) -> list[Any]:
        """Return every document matching filter, oldest first."""

    @abstractmethod
    def save(self, document: Any) -> Any:
        """Persist a loaded (possibly modified) document as a whole."""

    @abstractmethod
    def update_by_filter(
        self,
        filter: Mapping[str, Any],
        changes: Mapping[str, Any],
        *,
        apply_setters: bool = True,
        validate: bool = True,
    ) -> Any | None:
        """Apply changes to the first document matching filter and return it.

        changes may be flat or use ``$set``. Field setters always run;
        ``apply_setters=False`` is logged and overridden. Returns None when
        nothing matches.
        """

    @abstractmethod
    def delete_by_id(self, id: Any) -> bool:
        """Delete the document with this id; return whether one was deleted."""
