"""
Configuration management for the Doctors Portal backend.

This module provides centralized configuration using Pydantic settings
for type-safe environment variable management.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    db_uri: Optional[str] = Field(default=None, alias="DB_URI")
    db_name: str = Field(default="doctors_portal", alias="DB_NAME")

    # Access Token Configuration
    access_token_secret: str = Field(..., alias="ACCESS_TOKEN_SECRET")
    access_token_ttl_hours: int = Field(default=24, alias="ACCESS_TOKEN_TTL_HOURS")
    access_token_algorithm: str = Field(default="HS256", alias="ACCESS_TOKEN_ALGORITHM")

    # Stripe Configuration
    stripe_secret_key: Optional[str] = Field(default=None, alias="STRIPE_SECRET_KEY")
    payment_currency: str = Field(default="usd", alias="PAYMENT_CURRENCY")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    seed_catalog: bool = Field(default=True, alias="SEED_CATALOG")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Treatments offered by the clinic, seeded into an empty catalog on startup
MORNING_SLOTS = [
    "08:00 AM - 08:30 AM",
    "08:30 AM - 09:00 AM",
    "09:00 AM - 09:30 AM",
    "09:30 AM - 10:00 AM",
    "10:00 AM - 10:30 AM",
    "10:30 AM - 11:00 AM",
    "11:00 AM - 11:30 AM",
]

AFTERNOON_SLOTS = [
    "02:00 PM - 02:30 PM",
    "02:30 PM - 03:00 PM",
    "03:00 PM - 03:30 PM",
    "03:30 PM - 04:00 PM",
    "04:00 PM - 04:30 PM",
]

SERVICE_CATALOG: List[dict] = [
    {
        "title": "Teeth Orthodontics",
        "slots": MORNING_SLOTS + AFTERNOON_SLOTS,
        "fee": "200",
    },
    {
        "title": "Cosmetic Dentistry",
        "slots": MORNING_SLOTS,
        "fee": "150",
    },
    {
        "title": "Teeth Cleaning",
        "slots": MORNING_SLOTS + AFTERNOON_SLOTS,
        "fee": "60",
    },
    {
        "title": "Cavity Protection",
        "slots": AFTERNOON_SLOTS,
        "fee": "90",
    },
    {
        "title": "Pediatric Dental",
        "slots": MORNING_SLOTS,
        "fee": "110",
    },
    {
        "title": "Oral Surgery",
        "slots": AFTERNOON_SLOTS,
        "fee": "350.50",
    },
]

# Collection names shared by the store adapters and the services
SERVICES_COLLECTION = "services"
BOOKINGS_COLLECTION = "bookings"
USERS_COLLECTION = "users"
DOCTORS_COLLECTION = "doctors"
PAYMENTS_COLLECTION = "payments"
REVIEWS_COLLECTION = "reviews"

# Fields forming the booking conflict key
BOOKING_CONFLICT_KEY = ("treatment", "date", "patient")
