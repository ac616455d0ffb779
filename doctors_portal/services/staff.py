"""
Doctor roster and patient reviews.
"""

from typing import List

from loguru import logger

from doctors_portal.config import DOCTORS_COLLECTION, REVIEWS_COLLECTION
from doctors_portal.errors import Conflict, NotFound
from doctors_portal.models.user import Doctor, Review
from doctors_portal.store.base import DocumentStore, DuplicateKeyError


class DoctorRoster:
    """
    The clinic's doctors. Callers must check admin privilege first.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    async def list_doctors(self) -> List[Doctor]:
        documents = await self._store.find(DOCTORS_COLLECTION)
        return [Doctor.from_document(document) for document in documents]

    async def add_doctor(self, doctor: Doctor) -> Doctor:
        try:
            doctor_id = await self._store.insert_one(DOCTORS_COLLECTION, doctor.to_document())
        except DuplicateKeyError as e:
            raise Conflict(f"Doctor {doctor.email} is already on the roster") from e

        logger.info(f"Added doctor {doctor.email} ({doctor.specialty})")
        return doctor.model_copy(update={"id": doctor_id})

    async def remove_doctor(self, email: str) -> None:
        deleted = await self._store.delete_one(DOCTORS_COLLECTION, {"email": email})
        if not deleted:
            raise NotFound(f"Doctor {email} not found")
        logger.info(f"Removed doctor {email}")


class ReviewBoard:
    """Patient reviews, shown publicly."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def list_reviews(self) -> List[Review]:
        documents = await self._store.find(REVIEWS_COLLECTION)
        return [Review.from_document(document) for document in documents]

    async def add_review(self, review: Review) -> Review:
        review_id = await self._store.insert_one(REVIEWS_COLLECTION, review.to_document())
        return review.model_copy(update={"id": review_id})


async def get_doctor_roster() -> DoctorRoster:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return DoctorRoster(get_store())


async def get_review_board() -> ReviewBoard:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return ReviewBoard(get_store())
