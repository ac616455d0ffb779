"""
MongoDB document store.

Wraps a pymongo client; blocking driver calls run in a worker thread so
the event loop stays free. Identifiers cross this boundary as plain
strings and are converted to ``ObjectId`` only here.
"""

import asyncio
from typing import Any, Callable, List, Optional, Sequence

from bson import ObjectId
from loguru import logger
from pymongo import ASCENDING, MongoClient
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from doctors_portal.errors import StoreUnavailable

from .base import Document, DocumentStore, DuplicateKeyError, Filter


def to_mongo_filter(filter: Optional[Filter]) -> Optional[Filter]:
    """
    Convert a store filter to a Mongo query.

    Returns None when the filter names an ``_id`` that cannot be an
    ObjectId; such a filter matches nothing.
    """
    query = dict(filter or {})
    if "_id" in query and isinstance(query["_id"], str):
        if not ObjectId.is_valid(query["_id"]):
            return None
        query["_id"] = ObjectId(query["_id"])
    return query


def from_mongo_document(document: Optional[Document]) -> Optional[Document]:
    if document is None:
        return None
    document = dict(document)
    if "_id" in document:
        document["_id"] = str(document["_id"])
    return document


class MongoDocumentStore(DocumentStore):
    """
    Document store backed by a MongoDB database.
    """

    def __init__(self, uri: str, db_name: str, client: Optional[MongoClient] = None):
        self._client = client or MongoClient(uri, server_api=ServerApi("1"))
        self._db = self._client[db_name]

    async def _run(self, collection: str, operation: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(operation, *args, **kwargs)
        except MongoDuplicateKeyError as e:
            fields = tuple((e.details or {}).get("keyPattern", {}).keys())
            raise DuplicateKeyError(collection, fields) from e
        except PyMongoError as e:
            logger.error(f"MongoDB error on {collection}: {e}")
            raise StoreUnavailable(f"Store unavailable: {e}") from e

    async def find(self, collection: str, filter: Optional[Filter] = None) -> List[Document]:
        query = to_mongo_filter(filter)
        if query is None:
            return []

        def _find():
            return list(self._db[collection].find(query))

        documents = await self._run(collection, _find)
        return [from_mongo_document(document) for document in documents]

    async def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        query = to_mongo_filter(filter)
        if query is None:
            return None
        document = await self._run(collection, self._db[collection].find_one, query)
        return from_mongo_document(document)

    async def insert_one(self, collection: str, document: Document) -> str:
        result = await self._run(collection, self._db[collection].insert_one, dict(document))
        return str(result.inserted_id)

    async def update_one(
        self, collection: str, filter: Filter, patch: Document, upsert: bool = False
    ) -> int:
        query = to_mongo_filter(filter)
        if query is None:
            return 0
        result = await self._run(
            collection,
            self._db[collection].update_one,
            query,
            {"$set": patch},
            upsert=upsert,
        )
        if result.upserted_id is not None:
            return 1
        return result.matched_count

    async def delete_one(self, collection: str, filter: Filter) -> int:
        query = to_mongo_filter(filter)
        if query is None:
            return 0
        result = await self._run(collection, self._db[collection].delete_one, query)
        return result.deleted_count

    async def create_unique_index(self, collection: str, fields: Sequence[str]) -> None:
        keys = [(field, ASCENDING) for field in fields]
        await self._run(collection, self._db[collection].create_index, keys, unique=True)
        logger.info(f"Ensured unique index on {collection} {tuple(fields)}")

    async def close(self) -> None:
        self._client.close()
