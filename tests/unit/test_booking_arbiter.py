"""
Unit tests for the Booking Arbiter.

Covers acceptance, duplicate rejection on the (treatment, date, patient)
key and concurrent submissions racing for the same key.
"""

import asyncio

import pytest

from doctors_portal.config import BOOKINGS_COLLECTION
from doctors_portal.errors import BookingNotFound, InvalidRequest, StoreUnavailable
from doctors_portal.models.booking import BookingRequest
from doctors_portal.services.booking import BookingArbiter
from doctors_portal.store.memory import InMemoryDocumentStore
from tests.factories import CAVITY, DATE, booking_request


class InterleavingStore(InMemoryDocumentStore):
    """Store whose reads yield to the event loop, so racing checks both pass."""

    async def find_one(self, collection, filter):
        result = await super().find_one(collection, filter)
        await asyncio.sleep(0)
        return result


class UnavailableStore(InMemoryDocumentStore):
    async def find_one(self, collection, filter):
        raise StoreUnavailable("connection refused")


class TestSubmitBooking:
    """Test booking acceptance and conflict resolution."""

    @pytest.mark.asyncio
    async def test_first_booking_is_accepted(self, arbiter):
        result = await arbiter.submit_booking(booking_request())

        assert result.accepted is True
        assert result.existing is None
        assert result.record.id is not None
        assert result.record.patient_slot_time == "9:30 AM"
        assert result.record.paid is False
        assert result.record.patient_name == "Jane Doe"

    @pytest.mark.asyncio
    async def test_accepts_request_model(self, arbiter):
        request = BookingRequest.model_validate(booking_request())
        result = await arbiter.submit_booking(request)
        assert result.accepted is True

    @pytest.mark.asyncio
    async def test_duplicate_key_is_rejected(self, store, arbiter):
        first = await arbiter.submit_booking(booking_request(slot="9:30 AM"))
        second = await arbiter.submit_booking(booking_request(slot="9:30 AM"))

        assert first.accepted is True
        assert second.accepted is False
        assert second.record is None
        assert second.existing.id == first.record.id
        assert len(store.collections[BOOKINGS_COLLECTION]) == 1

    @pytest.mark.asyncio
    async def test_duplicate_rejected_regardless_of_slot(self, store, arbiter):
        first = await arbiter.submit_booking(booking_request(slot="9:00 AM"))
        second = await arbiter.submit_booking(booking_request(slot="10:00 AM"))

        assert second.accepted is False
        assert second.existing.id == first.record.id
        assert second.existing.patient_slot_time == "9:00 AM"
        assert second.booking is second.existing
        assert len(store.collections[BOOKINGS_COLLECTION]) == 1

    @pytest.mark.asyncio
    async def test_different_treatment_same_day_is_accepted(self, arbiter):
        await arbiter.submit_booking(booking_request())
        result = await arbiter.submit_booking(booking_request(treatment=CAVITY))
        assert result.accepted is True

    @pytest.mark.asyncio
    async def test_different_date_is_accepted(self, arbiter):
        await arbiter.submit_booking(booking_request())
        result = await arbiter.submit_booking(booking_request(date="May 20, 2022"))
        assert result.accepted is True

    @pytest.mark.asyncio
    async def test_different_patient_is_accepted(self, arbiter):
        await arbiter.submit_booking(booking_request())
        result = await arbiter.submit_booking(booking_request(patient="john@example.com"))
        assert result.accepted is True

    @pytest.mark.parametrize("field", ["treatment", "date", "patient", "patientSlotTime"])
    @pytest.mark.asyncio
    async def test_missing_field_is_rejected(self, store, arbiter, field):
        request = booking_request()
        del request[field]

        with pytest.raises(InvalidRequest):
            await arbiter.submit_booking(request)

        assert store.collections.get(BOOKINGS_COLLECTION, []) == []

    @pytest.mark.asyncio
    async def test_blank_field_is_rejected(self, store, arbiter):
        with pytest.raises(InvalidRequest):
            await arbiter.submit_booking(booking_request(patient="   "))

        assert store.collections.get(BOOKINGS_COLLECTION, []) == []

    @pytest.mark.asyncio
    async def test_unvalidated_model_is_rejected(self, arbiter):
        request = BookingRequest.model_construct(
            treatment="", date=DATE, patient="jane@example.com", patient_slot_time="9:00 AM"
        )
        with pytest.raises(InvalidRequest):
            await arbiter.submit_booking(request)

    @pytest.mark.asyncio
    async def test_store_unavailable_propagates(self):
        arbiter = BookingArbiter(UnavailableStore())
        with pytest.raises(StoreUnavailable):
            await arbiter.submit_booking(booking_request())


class TestConcurrentSubmission:
    """Racing submissions for one key commit exactly one booking."""

    @pytest.mark.asyncio
    async def test_racing_requests_commit_once(self):
        store = InterleavingStore()
        arbiter = BookingArbiter(store)
        await arbiter.ensure_indexes()

        slots = ["9:00 AM", "9:30 AM", "10:00 AM", "9:00 AM", "9:30 AM"]
        results = await asyncio.gather(
            *[arbiter.submit_booking(booking_request(slot=slot)) for slot in slots]
        )

        accepted = [r for r in results if r.accepted]
        rejected = [r for r in results if not r.accepted]
        assert len(accepted) == 1
        assert len(rejected) == len(slots) - 1
        assert all(r.existing.id == accepted[0].record.id for r in rejected)
        assert len(store.collections[BOOKINGS_COLLECTION]) == 1

    @pytest.mark.asyncio
    async def test_racing_requests_for_distinct_keys_all_commit(self):
        store = InterleavingStore()
        arbiter = BookingArbiter(store)
        await arbiter.ensure_indexes()

        patients = [f"patient{i}@example.com" for i in range(5)]
        results = await asyncio.gather(
            *[arbiter.submit_booking(booking_request(patient=p)) for p in patients]
        )

        assert all(r.accepted for r in results)
        assert len(store.collections[BOOKINGS_COLLECTION]) == 5


class TestBookingLookups:
    """Test booking lookups by id and by patient."""

    @pytest.mark.asyncio
    async def test_get_booking(self, arbiter):
        result = await arbiter.submit_booking(booking_request())

        booking = await arbiter.get_booking(result.record.id)

        assert booking.id == result.record.id
        assert booking.treatment == result.record.treatment

    @pytest.mark.asyncio
    async def test_get_missing_booking(self, arbiter):
        with pytest.raises(BookingNotFound):
            await arbiter.get_booking("does-not-exist")

    @pytest.mark.asyncio
    async def test_list_bookings_for_patient(self, arbiter):
        await arbiter.submit_booking(booking_request(patient="jane@example.com"))
        await arbiter.submit_booking(booking_request(patient="jane@example.com", treatment=CAVITY))
        await arbiter.submit_booking(booking_request(patient="john@example.com"))

        bookings = await arbiter.list_bookings_for_patient("jane@example.com")

        assert len(bookings) == 2
        assert {b.patient for b in bookings} == {"jane@example.com"}

    @pytest.mark.asyncio
    async def test_list_bookings_for_unknown_patient(self, arbiter):
        assert await arbiter.list_bookings_for_patient("nobody@example.com") == []
