"""
Doctors Portal API Server.

A FastAPI application exposing the clinic's booking backend: treatment
catalog, slot availability, bookings, payments, users, doctors and
reviews.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from pydantic import BaseModel, Field

from doctors_portal import __version__
from doctors_portal.config import get_settings
from doctors_portal.errors import Forbidden, PortalError
from doctors_portal.models import (
    AvailabilityView,
    Booking,
    BookingRequest,
    ConfirmationResult,
    Doctor,
    Identity,
    Review,
    Role,
    ServiceSummary,
    UserAccount,
    UserProfile,
)
from doctors_portal.services.auth import TokenService, get_token_service
from doctors_portal.services.availability import AvailabilityEngine, get_availability_engine
from doctors_portal.services.booking import BookingArbiter, get_booking_arbiter
from doctors_portal.services.catalog import ServiceCatalog, get_service_catalog
from doctors_portal.services.payment import (
    PaymentClient,
    PaymentConfirmation,
    amount_in_minor_units,
    get_payment_client,
    get_payment_confirmation,
)
from doctors_portal.services.roles import (
    RoleGate,
    UserDirectory,
    get_role_gate,
    get_user_directory,
)
from doctors_portal.services.staff import (
    DoctorRoster,
    ReviewBoard,
    get_doctor_roster,
    get_review_board,
)
from doctors_portal.store import bootstrap, get_store

# ============================================================================
# Data Models
# ============================================================================


class BookingResponse(BaseModel):
    """Outcome of a booking submission."""

    success: bool
    booking: Booking


class PaymentConfirmationRequest(BaseModel):
    """Gateway confirmation for a booking payment."""

    transaction_id: str = Field(min_length=1, alias="transactionId")
    amount: Optional[Decimal] = Field(default=None, ge=0)

    model_config = {"populate_by_name": True}


class PaymentIntentRequest(BaseModel):
    """Fee to collect for a booked service."""

    fee: Decimal = Field(gt=0)


class PaymentIntentResponse(BaseModel):
    client_secret: str = Field(alias="clientSecret")

    model_config = {"populate_by_name": True}


class UserRegistrationResponse(BaseModel):
    result: UserAccount
    access_token: str = Field(alias="accessToken")

    model_config = {"populate_by_name": True}


class AdminStatusResponse(BaseModel):
    admin: bool


# ============================================================================
# Dependencies
# ============================================================================

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """Resolve the caller from the bearer token."""
    return tokens.verify(credentials.credentials if credentials else None)


async def require_admin(
    identity: Identity = Depends(get_current_identity),
    gate: RoleGate = Depends(get_role_gate),
) -> Identity:
    """Resolve the caller and insist on admin privilege."""
    return await gate.require_admin(identity)


# ============================================================================
# FastAPI Application
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    store = get_store()

    # Startup
    logger.info("Starting Doctors Portal API Server")
    await bootstrap(store, seed_catalog=settings.seed_catalog)
    yield
    # Shutdown
    logger.info("Shutting down Doctors Portal API Server")
    await store.close()


app = FastAPI(
    title="Doctors Portal API",
    description="Appointment booking backend for a clinic",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "code": exc.code, "message": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "code": "INVALID_REQUEST",
            "message": "Invalid request",
            "errors": errors,
        },
    )


# ============================================================================
# API Endpoints
# ============================================================================


@app.get("/")
async def root():
    return {"message": "Hello there!"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


# Catalog and availability


@app.get("/services", response_model=List[ServiceSummary])
async def list_services(catalog: ServiceCatalog = Depends(get_service_catalog)):
    """List treatment titles."""
    return await catalog.list_service_titles()


@app.get("/available", response_model=List[AvailabilityView])
async def get_available(
    date: str = Query(..., description="Date, in the same format bookings are stored with"),
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    """Every service with the slots still free on ``date``."""
    return await engine.compute_availability(date)


# Bookings


@app.get("/booking", response_model=List[Booking])
async def list_patient_bookings(
    patient: str = Query(..., description="Patient email"),
    identity: Identity = Depends(get_current_identity),
    arbiter: BookingArbiter = Depends(get_booking_arbiter),
):
    """A patient's own bookings."""
    if patient != identity.email:
        raise Forbidden("Access is denied to this route")
    return await arbiter.list_bookings_for_patient(patient)


@app.get("/booking/{booking_id}", response_model=Booking)
async def get_booking(
    booking_id: str,
    identity: Identity = Depends(get_current_identity),
    arbiter: BookingArbiter = Depends(get_booking_arbiter),
):
    return await arbiter.get_booking(booking_id)


@app.post("/booking", response_model=BookingResponse)
async def submit_booking(
    request: BookingRequest,
    catalog: ServiceCatalog = Depends(get_service_catalog),
    arbiter: BookingArbiter = Depends(get_booking_arbiter),
):
    """
    Book a slot.

    A patient already holding the treatment on that date gets
    ``success: false`` with the existing booking.
    """
    await catalog.validate_selection(request.treatment, request.patient_slot_time)
    result = await arbiter.submit_booking(request)
    return BookingResponse(success=result.accepted, booking=result.booking)


@app.patch("/booking/{booking_id}", response_model=ConfirmationResult)
async def confirm_booking_payment(
    booking_id: str,
    payment: PaymentConfirmationRequest,
    identity: Identity = Depends(get_current_identity),
    confirmation: PaymentConfirmation = Depends(get_payment_confirmation),
):
    """Record a successful payment for a booking."""
    return await confirmation.confirm_payment(
        booking_id, payment.transaction_id, amount=payment.amount
    )


@app.post("/createpaymentintent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    request: PaymentIntentRequest,
    identity: Identity = Depends(get_current_identity),
    payments: PaymentClient = Depends(get_payment_client),
):
    """Create a card payment intent for a service fee."""
    settings = get_settings()
    client_secret = await payments.create_intent(
        amount_in_minor_units(request.fee), settings.payment_currency
    )
    return PaymentIntentResponse(client_secret=client_secret)


# Users and roles


@app.get("/users", response_model=List[UserAccount])
async def list_users(
    identity: Identity = Depends(get_current_identity),
    users: UserDirectory = Depends(get_user_directory),
):
    return await users.list_users()


@app.put("/user/{email}", response_model=UserRegistrationResponse)
async def register_user(
    email: str,
    profile: UserProfile,
    users: UserDirectory = Depends(get_user_directory),
    tokens: TokenService = Depends(get_token_service),
):
    """Create or update an account and hand out an access token."""
    account = await users.upsert_user(email, profile)
    return UserRegistrationResponse(result=account, access_token=tokens.issue(email))


@app.get("/admin/{email}", response_model=AdminStatusResponse)
async def get_admin_status(email: str, gate: RoleGate = Depends(get_role_gate)):
    return AdminStatusResponse(admin=await gate.is_admin(email))


@app.put("/user/admin/{email}", response_model=UserAccount)
async def promote_admin(
    email: str,
    admin: Identity = Depends(require_admin),
    users: UserDirectory = Depends(get_user_directory),
):
    return await users.set_role(email, Role.ADMIN)


@app.patch("/user/admin/{email}", response_model=UserAccount)
async def demote_admin(
    email: str,
    admin: Identity = Depends(require_admin),
    users: UserDirectory = Depends(get_user_directory),
):
    return await users.set_role(email, Role.PATIENT)


# Doctors


@app.get("/doctors", response_model=List[Doctor])
async def list_doctors(
    admin: Identity = Depends(require_admin),
    roster: DoctorRoster = Depends(get_doctor_roster),
):
    return await roster.list_doctors()


@app.post("/doctor", response_model=Doctor, status_code=status.HTTP_201_CREATED)
async def add_doctor(
    doctor: Doctor,
    admin: Identity = Depends(require_admin),
    roster: DoctorRoster = Depends(get_doctor_roster),
):
    return await roster.add_doctor(doctor)


@app.delete("/doctor/{email}")
async def remove_doctor(
    email: str,
    admin: Identity = Depends(require_admin),
    roster: DoctorRoster = Depends(get_doctor_roster),
):
    await roster.remove_doctor(email)
    return {"success": True, "email": email}


# Reviews


@app.get("/reviews", response_model=List[Review])
async def list_reviews(board: ReviewBoard = Depends(get_review_board)):
    return await board.list_reviews()


@app.post("/review", response_model=Review, status_code=status.HTTP_201_CREATED)
async def add_review(
    review: Review,
    identity: Identity = Depends(get_current_identity),
    board: ReviewBoard = Depends(get_review_board),
):
    if review.email is None:
        review = review.model_copy(update={"email": identity.email})
    return await board.add_review(review)


# ============================================================================
# Run Server
# ============================================================================


def run_server(host: Optional[str] = None, port: Optional[int] = None):
    """Run the Doctors Portal API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "doctors_portal.api.server:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
