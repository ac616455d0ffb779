"""
In-memory document store.

Used when no database URI is configured and throughout the test suite.
All writes go through a single asyncio lock, so a unique-index check and
the insert it guards happen as one step.
"""

import asyncio
import copy
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from loguru import logger

from .base import Document, DocumentStore, DuplicateKeyError, Filter


def _matches(document: Document, filter: Optional[Filter]) -> bool:
    if not filter:
        return True
    return all(key in document and document[key] == value for key, value in filter.items())


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-of-lists document store with unique index support.
    """

    def __init__(self):
        self._collections: Dict[str, List[Document]] = {}
        self._unique_indexes: Dict[str, List[Tuple[str, ...]]] = {}
        self._lock = asyncio.Lock()

    # Public accessor for testing
    @property
    def collections(self) -> Dict[str, List[Document]]:
        """Access to the raw collections."""
        return self._collections

    def clear(self) -> None:
        """Drop every document, keeping the declared indexes."""
        self._collections.clear()

    def _collection(self, name: str) -> List[Document]:
        return self._collections.setdefault(name, [])

    def _check_unique(self, collection: str, candidate: Document, skip: Optional[Document] = None) -> None:
        for fields in self._unique_indexes.get(collection, []):
            if not all(field in candidate for field in fields):
                continue
            key = tuple(candidate[field] for field in fields)
            for document in self._collection(collection):
                if document is skip:
                    continue
                if tuple(document.get(field) for field in fields) == key:
                    raise DuplicateKeyError(collection, fields)

    async def find(self, collection: str, filter: Optional[Filter] = None) -> List[Document]:
        return [
            copy.deepcopy(document)
            for document in self._collection(collection)
            if _matches(document, filter)
        ]

    async def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        for document in self._collection(collection):
            if _matches(document, filter):
                return copy.deepcopy(document)
        return None

    async def insert_one(self, collection: str, document: Document) -> str:
        async with self._lock:
            stored = copy.deepcopy(document)
            stored.setdefault("_id", uuid4().hex)
            self._check_unique(collection, stored)
            self._collection(collection).append(stored)
            return stored["_id"]

    async def update_one(
        self, collection: str, filter: Filter, patch: Document, upsert: bool = False
    ) -> int:
        async with self._lock:
            for document in self._collection(collection):
                if _matches(document, filter):
                    updated = {**document, **copy.deepcopy(patch)}
                    self._check_unique(collection, updated, skip=document)
                    document.update(copy.deepcopy(patch))
                    return 1

            if not upsert:
                return 0

            stored = {**copy.deepcopy(filter), **copy.deepcopy(patch)}
            stored.setdefault("_id", uuid4().hex)
            self._check_unique(collection, stored)
            self._collection(collection).append(stored)
            return 1

    async def delete_one(self, collection: str, filter: Filter) -> int:
        async with self._lock:
            documents = self._collection(collection)
            for index, document in enumerate(documents):
                if _matches(document, filter):
                    del documents[index]
                    return 1
            return 0

    async def create_unique_index(self, collection: str, fields: Sequence[str]) -> None:
        async with self._lock:
            indexes = self._unique_indexes.setdefault(collection, [])
            if tuple(fields) not in indexes:
                indexes.append(tuple(fields))
                logger.debug(f"Unique index on {collection} {tuple(fields)}")
