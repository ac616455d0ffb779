"""
Error taxonomy shared by the core services, store adapters and the API.

Every error carries a stable ``code`` and the HTTP ``status_code`` the
API layer answers with.
"""


class PortalError(Exception):
    """Base class for all Doctors Portal errors."""

    code = "PORTAL_ERROR"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidRequest(PortalError):
    """Missing or malformed input."""

    code = "INVALID_REQUEST"
    status_code = 400


class Unauthorized(PortalError):
    """The caller could not be identified."""

    code = "UNAUTHORIZED"
    status_code = 401


class Forbidden(PortalError):
    """The caller is identified but lacks the required privilege."""

    code = "FORBIDDEN"
    status_code = 403


class NotFound(PortalError):
    """Lookup miss on an id-based operation."""

    code = "NOT_FOUND"
    status_code = 404


class BookingNotFound(NotFound):
    code = "BOOKING_NOT_FOUND"


class Conflict(PortalError):
    """A uniqueness rule would be broken."""

    code = "CONFLICT"
    status_code = 409


class StoreUnavailable(PortalError):
    """The document store could not serve the request."""

    code = "STORE_UNAVAILABLE"
    status_code = 503


class PaymentProviderError(PortalError):
    """The payment gateway rejected or failed the request."""

    code = "PAYMENT_PROVIDER_ERROR"
    status_code = 503
