"""
Persistence layer for the Doctors Portal.
"""

from typing import Optional

from loguru import logger

from doctors_portal.config import (
    DOCTORS_COLLECTION,
    SERVICE_CATALOG,
    USERS_COLLECTION,
    get_settings,
)

from .base import Document, DocumentStore, DuplicateKeyError, Filter
from .memory import InMemoryDocumentStore

__all__ = [
    "Document",
    "DocumentStore",
    "DuplicateKeyError",
    "Filter",
    "InMemoryDocumentStore",
    "bootstrap",
    "get_store",
]


# Singleton instance for reuse
_store: Optional[DocumentStore] = None


def get_store() -> DocumentStore:
    """
    Get the singleton document store.

    MongoDB when ``DB_URI`` is configured, in-memory otherwise.
    """
    global _store
    if _store is None:
        settings = get_settings()
        if settings.db_uri:
            from .mongo import MongoDocumentStore

            _store = MongoDocumentStore(settings.db_uri, settings.db_name)
            logger.info(f"Using MongoDB store, database {settings.db_name}")
        else:
            _store = InMemoryDocumentStore()
            logger.warning("DB_URI not set, using in-memory store")
    return _store


async def bootstrap(store: DocumentStore, seed_catalog: bool = True) -> None:
    """
    Prepare a store for serving: unique indexes and the seed catalog.

    Safe to call repeatedly.
    """
    from doctors_portal.services.booking import BookingArbiter
    from doctors_portal.services.catalog import ServiceCatalog

    await ServiceCatalog(store).ensure_indexes()
    await BookingArbiter(store).ensure_indexes()
    await store.create_unique_index(USERS_COLLECTION, ("email",))
    await store.create_unique_index(DOCTORS_COLLECTION, ("email",))

    if seed_catalog:
        seeded = await ServiceCatalog(store).seed(SERVICE_CATALOG)
        if seeded:
            logger.info(f"Seeded {seeded} services into the catalog")
