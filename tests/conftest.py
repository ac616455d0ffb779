"""
Shared fixtures for the Doctors Portal test suite.
"""

import os

# Settings are read lazily; make sure tests never need a real environment
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-token-secret")
os.environ.pop("DB_URI", None)

import pytest  # noqa: E402

from doctors_portal.services.booking import BookingArbiter  # noqa: E402
from doctors_portal.services.catalog import ServiceCatalog  # noqa: E402
from doctors_portal.store.memory import InMemoryDocumentStore  # noqa: E402
from tests.factories import TEST_SERVICES  # noqa: E402


@pytest.fixture
def store():
    """A fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
async def catalog(store):
    """Catalog holding the two test services."""
    catalog = ServiceCatalog(store)
    await catalog.ensure_indexes()
    await catalog.seed(TEST_SERVICES)
    return catalog


@pytest.fixture
async def arbiter(store):
    """Booking arbiter with its conflict-key index in place."""
    arbiter = BookingArbiter(store)
    await arbiter.ensure_indexes()
    return arbiter
