"""
Availability Engine - derives the free slots of every service for a date.

Nothing is cached: every call reads the catalog and the bookings for the
date afresh, so the result always reflects the latest store state.
"""

import asyncio
from collections import defaultdict
from typing import Dict, List, Optional, Set

from loguru import logger

from doctors_portal.config import BOOKINGS_COLLECTION
from doctors_portal.models.service import AvailabilityView, Service
from doctors_portal.services.catalog import ServiceCatalog
from doctors_portal.store.base import Document, DocumentStore


def free_slots(service: Service, booked: Set[str]) -> List[str]:
    """The slots of ``service`` absent from ``booked``, in declared order."""
    return [slot for slot in service.slots if slot not in booked]


def booked_slots_by_treatment(bookings: List[Document]) -> Dict[str, Set[str]]:
    """Group the booked slot labels by treatment title."""
    booked: Dict[str, Set[str]] = defaultdict(set)
    for booking in bookings:
        treatment = booking.get("treatment")
        slot = booking.get("patientSlotTime")
        if treatment is None or slot is None:
            continue
        booked[treatment].add(slot)
    return booked


class AvailabilityEngine:
    """
    Computes per-service availability for a date.

    Stateless; safe to share and to call concurrently.
    """

    def __init__(self, store: DocumentStore, catalog: Optional[ServiceCatalog] = None):
        self._store = store
        self._catalog = catalog or ServiceCatalog(store)

    async def compute_availability(self, date: str) -> List[AvailabilityView]:
        """
        Compute the bookable slots of every service on ``date``.

        Args:
            date: Date string matched verbatim against stored bookings

        Returns:
            One view per service, in catalog order
        """
        services, bookings = await asyncio.gather(
            self._catalog.list_services(),
            self._store.find(BOOKINGS_COLLECTION, {"date": date}),
        )

        booked = booked_slots_by_treatment(bookings)

        # Bookings for treatments missing from the catalog are never looked up
        views = [
            AvailabilityView(
                **service.model_dump(by_alias=True),
                availableSlots=free_slots(service, booked.get(service.title, set())),
            )
            for service in services
        ]

        logger.debug(
            f"Availability for {date}: {len(services)} services, {len(bookings)} bookings"
        )
        return views


async def get_availability_engine() -> AvailabilityEngine:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return AvailabilityEngine(get_store())
