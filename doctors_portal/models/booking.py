"""
Booking-related data models.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .document import StoredDocument


class BookingRequest(StoredDocument):
    """
    A patient's request to reserve one slot of one treatment on one date.

    Values are kept verbatim; ``date`` in particular must match the
    format used by availability queries exactly.
    """

    treatment: str = Field(min_length=1, description="Service title")
    date: str = Field(min_length=1, description="Calendar date, canonical format")
    patient: str = Field(min_length=1, description="Patient identity (email)")
    patient_slot_time: str = Field(
        min_length=1, alias="patientSlotTime", description="Requested slot label"
    )
    patient_name: Optional[str] = Field(default=None, alias="patientName")
    phone: Optional[str] = Field(default=None)

    @field_validator("treatment", "date", "patient", "patient_slot_time")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        """Blank values count as missing; non-blank values are not altered."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @property
    def conflict_key(self) -> dict:
        return {"treatment": self.treatment, "date": self.date, "patient": self.patient}


class Booking(BookingRequest):
    """
    A committed booking.
    """

    paid: bool = Field(default=False, description="Whether payment was confirmed")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")


class BookingResult(BaseModel):
    """
    Result of a booking attempt.

    ``record`` is set when the booking was accepted, ``existing`` holds
    the prior booking that caused a rejection.
    """

    accepted: bool = Field(description="Whether the booking was committed")
    record: Optional[Booking] = Field(default=None)
    existing: Optional[Booking] = Field(default=None)

    @property
    def booking(self) -> Optional[Booking]:
        return self.record if self.accepted else self.existing


class Payment(StoredDocument):
    """An append-only payment entry."""

    booking_id: str = Field(alias="bookingId")
    transaction_id: str = Field(min_length=1, alias="transactionId")
    patient: Optional[str] = Field(default=None)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )


class ConfirmationResult(BaseModel):
    """Result of confirming payment for a booking."""

    booking_id: str = Field(alias="bookingId")
    transaction_id: str = Field(alias="transactionId")
    payment_id: str = Field(alias="paymentId")
    paid: bool = True

    model_config = {"populate_by_name": True}
