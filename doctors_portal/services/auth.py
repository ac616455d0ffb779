"""
Access tokens.

Tokens are HS256 JWTs carrying the caller's email and an expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt import PyJWTError

from doctors_portal.config import get_settings
from doctors_portal.errors import Unauthorized
from doctors_portal.models.user import Identity


class TokenService:
    """Issues and verifies access tokens."""

    def __init__(self, secret: str, ttl: timedelta = timedelta(days=1), algorithm: str = "HS256"):
        self._secret = secret
        self._ttl = ttl
        self._algorithm = algorithm

    def issue(self, email: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> Identity:
        """
        Decode ``token`` into the caller's identity.

        Raises:
            Unauthorized: if the token is missing, expired, tampered with or has no email
        """
        if not token:
            raise Unauthorized("Access token required")

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except PyJWTError as e:
            raise Unauthorized(f"Invalid access token: {e}") from e

        email = payload.get("email")
        if not email:
            raise Unauthorized("Access token carries no identity")
        return Identity(email=email)


# Singleton instance
_token_service: Optional[TokenService] = None


def get_token_service() -> TokenService:
    """Get the singleton token service instance."""
    global _token_service
    if _token_service is None:
        settings = get_settings()
        _token_service = TokenService(
            secret=settings.access_token_secret,
            ttl=timedelta(hours=settings.access_token_ttl_hours),
            algorithm=settings.access_token_algorithm,
        )
    return _token_service
