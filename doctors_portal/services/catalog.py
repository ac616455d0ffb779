"""
Service Catalog - read access to the clinic's treatments.

Each treatment carries the full, ordered list of slot labels it can be
booked against. The catalog is only written when seeding.
"""

from typing import Iterable, List, Optional

from loguru import logger
from pydantic import ValidationError

from doctors_portal.config import SERVICES_COLLECTION
from doctors_portal.errors import InvalidRequest
from doctors_portal.models.service import Service, ServiceSummary
from doctors_portal.store.base import Document, DocumentStore, DuplicateKeyError


def _parse_service(document: Document) -> Optional[Service]:
    """The service held by ``document``, or None if the entry is malformed."""
    try:
        return Service.from_document(document)
    except ValidationError as e:
        logger.warning(f"Skipping malformed service {document.get('_id')}: {e.error_count()} errors")
        return None


class ServiceCatalog:
    """
    Read-only view of treatments and their slots.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    async def ensure_indexes(self) -> None:
        await self._store.create_unique_index(SERVICES_COLLECTION, ("title",))

    async def list_services(self) -> List[Service]:
        """All well-formed services with all fields, in catalog order."""
        documents = await self._store.find(SERVICES_COLLECTION)
        services = (_parse_service(document) for document in documents)
        return [service for service in services if service is not None]

    async def list_service_titles(self) -> List[ServiceSummary]:
        """Catalog entries reduced to identifier and title."""
        documents = await self._store.find(SERVICES_COLLECTION)
        return [
            ServiceSummary(id=document.get("_id"), title=document["title"])
            for document in documents
            if isinstance(document.get("title"), str) and document["title"]
        ]

    async def get_service(self, title: str) -> Optional[Service]:
        document = await self._store.find_one(SERVICES_COLLECTION, {"title": title})
        if document is None:
            return None
        return _parse_service(document)

    async def add_service(self, service: Service) -> Service:
        service_id = await self._store.insert_one(SERVICES_COLLECTION, service.to_document())
        return service.model_copy(update={"id": service_id})

    async def seed(self, services: Iterable[dict]) -> int:
        """
        Insert the given services if the catalog is empty.

        Returns the number of services inserted.
        """
        if await self._store.find_one(SERVICES_COLLECTION, {}) is not None:
            return 0

        inserted = 0
        for entry in services:
            try:
                await self.add_service(Service.model_validate(entry))
                inserted += 1
            except DuplicateKeyError:
                logger.debug(f"Service {entry['title']} already present")
        return inserted

    async def validate_selection(self, treatment: str, slot: str) -> Service:
        """
        Check that ``slot`` is one of the slots offered for ``treatment``.

        Raises:
            InvalidRequest: if the treatment is unknown or does not offer the slot
        """
        service = await self.get_service(treatment)
        if service is None:
            raise InvalidRequest(f"Unknown treatment: {treatment}")
        if slot not in service.slots:
            raise InvalidRequest(f"{treatment} is not offered at {slot}")
        return service


async def get_service_catalog() -> ServiceCatalog:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return ServiceCatalog(get_store())
