"""
Identity, role and staff models.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .document import StoredDocument


class Role(str, Enum):
    """Role held on a user account."""

    PATIENT = "user"
    ADMIN = "admin"


ROLE_TAGS = frozenset(role.value for role in Role)


class UserAccount(StoredDocument):
    """A registered user."""

    email: str = Field(min_length=1)
    name: Optional[str] = Field(default=None)
    role: Role = Field(default=Role.PATIENT)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "UserAccount":
        # Stored roles outside the known tags grant nothing
        if document.get("role") not in ROLE_TAGS:
            document = {**document, "role": Role.PATIENT.value}
        return super().from_document(document)


class UserProfile(BaseModel):
    """Fields a user may set on their own account."""

    name: Optional[str] = Field(default=None, max_length=100)


class Identity(BaseModel):
    """The verified caller behind an access token."""

    email: str


class Doctor(StoredDocument):
    """A doctor on the clinic roster."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1)
    specialty: str = Field(min_length=1, description="Treatment the doctor performs")
    img: Optional[str] = Field(default=None, description="Portrait URL")


class Review(StoredDocument):
    """A patient review of the clinic."""

    name: str = Field(min_length=1, max_length=100)
    email: Optional[str] = Field(default=None)
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)
