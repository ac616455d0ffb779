"""
Treatment catalog models.
"""

from decimal import Decimal
from typing import List

from pydantic import Field

from .document import StoredDocument


class Service(StoredDocument):
    """
    A bookable treatment with its ordered list of offerable slots.
    """

    title: str = Field(min_length=1, description="Unique treatment title")
    slots: List[str] = Field(default_factory=list, description="Slot labels in offering order")
    fee: Decimal = Field(default=Decimal("0"), ge=0, description="Treatment fee")


class ServiceSummary(StoredDocument):
    """Catalog entry reduced to its title."""

    title: str


class AvailabilityView(Service):
    """
    A service together with the slots still free on one date.

    Derived on every query, never persisted.
    """

    available_slots: List[str] = Field(
        default_factory=list,
        alias="availableSlots",
        description="Free slots, in the service's slot order",
    )
