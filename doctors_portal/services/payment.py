"""
Payment Service - payment intents and payment confirmation.

Confirmation only records the payment against the booking; it never
re-checks slot availability, since a booked slot is held whether or not
it has been paid.
"""

import asyncio
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol

import stripe
from loguru import logger

from doctors_portal.config import BOOKINGS_COLLECTION, PAYMENTS_COLLECTION, get_settings
from doctors_portal.errors import BookingNotFound, Conflict, InvalidRequest, PaymentProviderError
from doctors_portal.models.booking import Booking, ConfirmationResult, Payment
from doctors_portal.store.base import DocumentStore


def amount_in_minor_units(fee: Decimal) -> int:
    """Convert a fee in major currency units to an integer count of cents."""
    if fee < 0:
        raise InvalidRequest("Fee must not be negative")
    return int((Decimal(fee) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentClient(Protocol):
    async def create_intent(self, amount_minor_units: int, currency: str) -> str:
        """Create a payment intent and return its client secret."""
        ...


class StripePaymentClient:
    """
    Payment client backed by Stripe payment intents.
    """

    def __init__(self, api_key: Optional[str]):
        self._api_key = api_key

    async def create_intent(self, amount_minor_units: int, currency: str) -> str:
        """
        Create a card payment intent.

        Args:
            amount_minor_units: Amount in the currency's smallest unit
            currency: ISO currency code

        Returns:
            The intent's client secret

        Raises:
            PaymentProviderError: if Stripe is not configured or rejects the request
        """
        if not self._api_key:
            raise PaymentProviderError("Payment provider is not configured")
        if amount_minor_units <= 0:
            raise InvalidRequest("Payment amount must be positive")

        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=amount_minor_units,
                currency=currency,
                payment_method_types=["card"],
                api_key=self._api_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating payment intent: {e}")
            raise PaymentProviderError(f"Payment provider error: {e.user_message or e}") from e

        logger.info(f"Created payment intent {intent.id} for {amount_minor_units} {currency}")
        return intent.client_secret


class PaymentConfirmation:
    """
    Records payments and marks bookings as paid.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    async def confirm_payment(
        self,
        booking_id: str,
        transaction_id: str,
        amount: Optional[Decimal] = None,
    ) -> ConfirmationResult:
        """
        Mark a booking as paid.

        Args:
            booking_id: Identifier of the booking being paid
            transaction_id: Gateway transaction identifier
            amount: Amount paid, recorded with the payment entry

        Returns:
            ConfirmationResult with the stored payment identifier

        Raises:
            InvalidRequest: if the transaction id is blank
            BookingNotFound: if no booking has ``booking_id``
            Conflict: if the booking is already paid
        """
        if not transaction_id or not transaction_id.strip():
            raise InvalidRequest("transactionId is required")

        document = await self._store.find_one(BOOKINGS_COLLECTION, {"_id": booking_id})
        if document is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        booking = Booking.from_document(document)
        if booking.paid:
            raise Conflict(f"Booking {booking_id} is already paid ({booking.transaction_id})")

        updated = await self._store.update_one(
            BOOKINGS_COLLECTION,
            {"_id": booking_id},
            {"paid": True, "transactionId": transaction_id},
        )
        if not updated:
            raise BookingNotFound(f"Booking {booking_id} not found")

        payment = Payment(
            booking_id=booking_id,
            transaction_id=transaction_id,
            patient=booking.patient,
            amount=amount,
        )
        payment_id = await self._store.insert_one(PAYMENTS_COLLECTION, payment.to_document())

        logger.info(f"Payment {payment_id} confirmed for booking {booking_id} ({transaction_id})")
        return ConfirmationResult(
            booking_id=booking_id,
            transaction_id=transaction_id,
            payment_id=payment_id,
        )


def get_payment_client() -> PaymentClient:
    """FastAPI dependency provider."""
    return StripePaymentClient(get_settings().stripe_secret_key)


async def get_payment_confirmation() -> PaymentConfirmation:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return PaymentConfirmation(get_store())
