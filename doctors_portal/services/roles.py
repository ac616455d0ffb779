"""
Role Gate and User Directory.

Privilege is decided from the ``Role`` tag held on the user account;
an unknown account is simply not an admin.
"""

from typing import List, Optional

from loguru import logger

from doctors_portal.config import USERS_COLLECTION
from doctors_portal.errors import Forbidden, NotFound
from doctors_portal.models.user import Identity, Role, UserAccount, UserProfile
from doctors_portal.store.base import DocumentStore


def has_admin_role(account: Optional[UserAccount]) -> bool:
    """True only for an existing account tagged ``Role.ADMIN``."""
    return account is not None and account.role is Role.ADMIN


class UserDirectory:
    """
    Registered user accounts.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    async def get_user(self, email: str) -> Optional[UserAccount]:
        document = await self._store.find_one(USERS_COLLECTION, {"email": email})
        if document is None:
            return None
        return UserAccount.from_document(document)

    async def list_users(self) -> List[UserAccount]:
        documents = await self._store.find(USERS_COLLECTION)
        return [UserAccount.from_document(document) for document in documents]

    async def upsert_user(self, email: str, profile: UserProfile) -> UserAccount:
        """
        Create the account for ``email`` or update its profile.

        The role is never touched here; new accounts start as patients.
        """
        patch = profile.model_dump(exclude_none=True)
        existing = await self.get_user(email)
        if existing is None:
            patch["role"] = Role.PATIENT.value
        elif not patch:
            return existing

        await self._store.update_one(USERS_COLLECTION, {"email": email}, patch, upsert=True)
        if existing is None:
            logger.info(f"Registered user {email}")

        return await self.get_user(email)

    async def set_role(self, email: str, role: Role) -> UserAccount:
        """
        Promote or demote an existing account.

        Raises:
            NotFound: if no account has ``email``
        """
        updated = await self._store.update_one(
            USERS_COLLECTION, {"email": email}, {"role": role.value}
        )
        if not updated:
            raise NotFound(f"User {email} not found")

        logger.info(f"User {email} is now {role.name.lower()}")
        return await self.get_user(email)


class RoleGate:
    """
    Answers whether an identity holds admin privilege.
    """

    def __init__(self, store: DocumentStore):
        self._users = UserDirectory(store)

    async def is_admin(self, email: str) -> bool:
        return has_admin_role(await self._users.get_user(email))

    async def require_admin(self, identity: Identity) -> Identity:
        """
        Raises:
            Forbidden: if ``identity`` is not an admin
        """
        if not await self.is_admin(identity.email):
            logger.warning(f"Admin access denied for {identity.email}")
            raise Forbidden("Admin privilege required")
        return identity


async def get_user_directory() -> UserDirectory:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return UserDirectory(get_store())


async def get_role_gate() -> RoleGate:
    """FastAPI dependency provider."""
    from doctors_portal.store import get_store

    return RoleGate(get_store())
