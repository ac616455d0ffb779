"""
Document store contract.

The core talks to persistence only through this interface: exact-match
filters over stored documents, set-fields patches and opaque string
identifiers under ``_id``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from doctors_portal.errors import Conflict

Document = Dict[str, Any]
Filter = Dict[str, Any]


class DuplicateKeyError(Conflict):
    """A write would break a unique index."""

    code = "DUPLICATE_KEY"

    def __init__(self, collection: str, fields: Sequence[str]):
        super().__init__(f"Duplicate key on {collection} {tuple(fields)}")
        self.collection = collection
        self.fields = tuple(fields)


class DocumentStore(ABC):
    """Async document store."""

    @abstractmethod
    async def find(self, collection: str, filter: Optional[Filter] = None) -> List[Document]:
        """Return every document matching ``filter``, in insertion order."""

    @abstractmethod
    async def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        """Return the first document matching ``filter`` or None."""

    @abstractmethod
    async def insert_one(self, collection: str, document: Document) -> str:
        """
        Insert a document and return its assigned identifier.

        Raises:
            DuplicateKeyError: if a unique index on the collection is violated
        """

    @abstractmethod
    async def update_one(
        self, collection: str, filter: Filter, patch: Document, upsert: bool = False
    ) -> int:
        """
        Set the fields of ``patch`` on the first document matching ``filter``.

        With ``upsert`` a document built from ``filter`` and ``patch`` is
        inserted when nothing matches. Returns the number of documents
        modified or inserted.
        """

    @abstractmethod
    async def delete_one(self, collection: str, filter: Filter) -> int:
        """Delete the first document matching ``filter``; return the count deleted."""

    @abstractmethod
    async def create_unique_index(self, collection: str, fields: Sequence[str]) -> None:
        """Enforce uniqueness of the combined ``fields`` values on future writes."""

    async def close(self) -> None:
        """Release connections held by the store."""
