"""
Data models for the Doctors Portal.
"""

from .booking import Booking, BookingRequest, BookingResult, ConfirmationResult, Payment
from .document import StoredDocument
from .service import AvailabilityView, Service, ServiceSummary
from .user import Doctor, Identity, Review, Role, UserAccount, UserProfile

__all__ = [
    "AvailabilityView",
    "Booking",
    "BookingRequest",
    "BookingResult",
    "ConfirmationResult",
    "Doctor",
    "Identity",
    "Payment",
    "Review",
    "Role",
    "Service",
    "ServiceSummary",
    "StoredDocument",
    "UserAccount",
    "UserProfile",
]
