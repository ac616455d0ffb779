"""
Booking Arbiter - commits bookings without ever double-booking a patient.

A patient holds at most one booking per treatment per date, whatever the
slot. The pre-insert lookup answers the common case; the unique index on
the conflict key settles concurrent submissions, so two racing requests
can never both be committed.
"""

from typing import Any, List, Mapping, Union

from loguru import logger
from pydantic import ValidationError

from doctors_portal.config import BOOKING_CONFLICT_KEY, BOOKINGS_COLLECTION
from doctors_portal.errors import BookingNotFound, Conflict, InvalidRequest
from doctors_portal.models.booking import Booking, BookingRequest, BookingResult
from doctors_portal.store.base import DocumentStore, DuplicateKeyError


def _as_request(request: Union[BookingRequest, Mapping[str, Any]]) -> BookingRequest:
    if isinstance(request, BookingRequest):
        # Re-validate: instances built with model_construct skip field checks
        data = request.model_dump(by_alias=True)
    else:
        data = dict(request)

    try:
        return BookingRequest.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
        raise InvalidRequest(f"Invalid booking request: {fields}") from e


class BookingArbiter:
    """
    Accepts booking requests and resolves conflicts on the
    ``(treatment, date, patient)`` key.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    async def ensure_indexes(self) -> None:
        """Declare the unique conflict-key index on the bookings collection."""
        await self._store.create_unique_index(BOOKINGS_COLLECTION, BOOKING_CONFLICT_KEY)

    async def submit_booking(
        self, request: Union[BookingRequest, Mapping[str, Any]]
    ) -> BookingResult:
        """
        Book a slot unless the patient already holds this treatment on this date.

        Args:
            request: The booking request (model or raw mapping)

        Returns:
            BookingResult, accepted with the new record, or rejected with
            the booking already holding the key

        Raises:
            InvalidRequest: if a required field is missing or blank
            StoreUnavailable: if the store cannot be reached
        """
        request = _as_request(request)
        key = request.conflict_key

        existing = await self._store.find_one(BOOKINGS_COLLECTION, key)
        if existing is not None:
            logger.info(
                f"Booking rejected: {request.patient} already holds "
                f"{request.treatment} on {request.date}"
            )
            return BookingResult(accepted=False, existing=Booking.from_document(existing))

        booking = Booking.model_validate(request.model_dump(by_alias=True))
        try:
            booking_id = await self._store.insert_one(BOOKINGS_COLLECTION, booking.to_document())
        except DuplicateKeyError:
            # A concurrent submission committed the same key first
            existing = await self._store.find_one(BOOKINGS_COLLECTION, key)
            if existing is None:
                raise Conflict(
                    f"Booking for {request.treatment} on {request.date} is already taken"
                )
            logger.warning(
                f"Booking race lost: {request.patient} / {request.treatment} / {request.date}"
            )
            return BookingResult(accepted=False, existing=Booking.from_document(existing))

        record = booking.model_copy(update={"id": booking_id})
        logger.info(
            f"Booking {booking_id} accepted: {request.patient} - {request.treatment} "
            f"on {request.date} at {request.patient_slot_time}"
        )
        return BookingResult(accepted=True, record=record)

    async def get_booking(self, booking_id: str) -> Booking:
        document = await self._store.find_one(BOOKINGS_COLLECTION, {"_id": booking_id})
        if document is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        return Booking.from_document(document)

    async def list_bookings_for_patient(self, email: str) -> List[Booking]:
        documents = await self._store.find(BOOKINGS_COLLECTION, {"patient": email})
        return [Booking.from_document(document) for document in documents]


async def get_booking_arbiter() -> BookingArbiter:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return BookingArbiter(get_store())
