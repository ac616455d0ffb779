"""
Services layer for the Doctors Portal.
"""

from .auth import TokenService
from .availability import AvailabilityEngine
from .booking import BookingArbiter
from .catalog import ServiceCatalog
from .payment import PaymentConfirmation, StripePaymentClient, amount_in_minor_units
from .roles import RoleGate, UserDirectory, has_admin_role
from .staff import DoctorRoster, ReviewBoard

__all__ = [
    "AvailabilityEngine",
    "BookingArbiter",
    "DoctorRoster",
    "PaymentConfirmation",
    "ReviewBoard",
    "RoleGate",
    "ServiceCatalog",
    "StripePaymentClient",
    "TokenService",
    "UserDirectory",
    "amount_in_minor_units",
    "has_admin_role",
]
