"""
Unit tests for the in-memory document store.
"""

import asyncio

import pytest

from doctors_portal.store.base import DuplicateKeyError


class TestReads:
    """Test exact-match lookups."""

    @pytest.mark.asyncio
    async def test_find_filters_exactly(self, store):
        await store.insert_one("items", {"a": 1, "b": "x"})
        await store.insert_one("items", {"a": 1, "b": "y"})
        await store.insert_one("items", {"a": 2, "b": "x"})

        assert len(await store.find("items", {"a": 1})) == 2
        assert len(await store.find("items", {"a": 1, "b": "x"})) == 1
        assert len(await store.find("items")) == 3
        assert await store.find("items", {"c": None}) == []

    @pytest.mark.asyncio
    async def test_find_keeps_insertion_order(self, store):
        for name in ["c", "a", "b"]:
            await store.insert_one("items", {"name": name})

        assert [doc["name"] for doc in await store.find("items")] == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_find_one_by_id(self, store):
        item_id = await store.insert_one("items", {"name": "x"})

        document = await store.find_one("items", {"_id": item_id})

        assert document == {"_id": item_id, "name": "x"}
        assert await store.find_one("items", {"_id": "missing"}) is None

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, store):
        await store.insert_one("items", {"tags": ["a"]})

        document = await store.find_one("items", {})
        document["tags"].append("b")

        assert (await store.find_one("items", {}))["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_unknown_collection_is_empty(self, store):
        assert await store.find("nothing") == []
        assert await store.find_one("nothing", {}) is None


class TestWrites:
    """Test updates, upserts and deletes."""

    @pytest.mark.asyncio
    async def test_update_one(self, store):
        await store.insert_one("items", {"name": "x", "paid": False})

        assert await store.update_one("items", {"name": "x"}, {"paid": True}) == 1
        assert (await store.find_one("items", {"name": "x"}))["paid"] is True

    @pytest.mark.asyncio
    async def test_update_without_match(self, store):
        assert await store.update_one("items", {"name": "x"}, {"paid": True}) == 0
        assert await store.find("items") == []

    @pytest.mark.asyncio
    async def test_upsert_inserts_filter_and_patch(self, store):
        assert await store.update_one("users", {"email": "a@x"}, {"role": "user"}, upsert=True) == 1

        document = await store.find_one("users", {"email": "a@x"})
        assert document["role"] == "user"
        assert "_id" in document

    @pytest.mark.asyncio
    async def test_delete_one(self, store):
        await store.insert_one("items", {"name": "x"})
        await store.insert_one("items", {"name": "x"})

        assert await store.delete_one("items", {"name": "x"}) == 1
        assert len(await store.find("items")) == 1
        assert await store.delete_one("items", {"name": "y"}) == 0

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.insert_one("items", {"name": "x"})
        store.clear()
        assert await store.find("items") == []


class TestUniqueIndexes:
    """Test unique index enforcement."""

    @pytest.mark.asyncio
    async def test_duplicate_insert_rejected(self, store):
        await store.create_unique_index("bookings", ("treatment", "date", "patient"))
        key = {"treatment": "T", "date": "D", "patient": "P"}

        await store.insert_one("bookings", {**key, "slot": "9:00"})
        with pytest.raises(DuplicateKeyError) as excinfo:
            await store.insert_one("bookings", {**key, "slot": "9:30"})

        assert excinfo.value.fields == ("treatment", "date", "patient")
        assert len(await store.find("bookings")) == 1

    @pytest.mark.asyncio
    async def test_partial_key_overlap_allowed(self, store):
        await store.create_unique_index("bookings", ("treatment", "date", "patient"))

        await store.insert_one("bookings", {"treatment": "T", "date": "D", "patient": "P"})
        await store.insert_one("bookings", {"treatment": "T", "date": "D", "patient": "Q"})

        assert len(await store.find("bookings")) == 2

    @pytest.mark.asyncio
    async def test_update_into_duplicate_rejected(self, store):
        await store.create_unique_index("users", ("email",))
        await store.insert_one("users", {"email": "a@x"})
        await store.insert_one("users", {"email": "b@x"})

        with pytest.raises(DuplicateKeyError):
            await store.update_one("users", {"email": "b@x"}, {"email": "a@x"})

        assert await store.find_one("users", {"email": "b@x"}) is not None

    @pytest.mark.asyncio
    async def test_concurrent_inserts_commit_once(self, store):
        await store.create_unique_index("users", ("email",))

        results = await asyncio.gather(
            *[store.insert_one("users", {"email": "a@x"}) for _ in range(10)],
            return_exceptions=True,
        )

        assert sum(1 for r in results if isinstance(r, str)) == 1
        assert sum(1 for r in results if isinstance(r, DuplicateKeyError)) == 9

    @pytest.mark.asyncio
    async def test_index_declared_twice(self, store):
        await store.create_unique_index("users", ("email",))
        await store.create_unique_index("users", ("email",))

        await store.insert_one("users", {"email": "a@x"})
        assert len(await store.find("users")) == 1
