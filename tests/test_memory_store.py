"""Tests for the in-memory booking store."""

import pytest

from barber_booking.errors import PersistenceError
from tests.conftest import DAY, at, make_booking


class TestCreateAndFind:
    @pytest.mark.asyncio
    async def test_create_then_find(self, store):
        await store.create(make_booking("A", at(10)))
        found = await store.find_by_id("A")
        assert found.id == "A"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, store):
        assert await store.find_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, store):
        await store.create(make_booking("A", at(10)))
        with pytest.raises(PersistenceError):
            await store.create(make_booking("A", at(12)))

    @pytest.mark.asyncio
    async def test_returns_copies(self, store):
        await store.create(make_booking("A", at(10)))
        found = await store.find_by_id("A")
        found.customer_name = "Changed"
        assert (await store.find_by_id("A")).customer_name == "Test Customer"

    @pytest.mark.asyncio
    async def test_date_range_half_open_and_sorted(self, store):
        await store.create(make_booking("LATE", at(15)))
        await store.create(make_booking("EARLY", at(9)))
        await store.create(make_booking("EDGE", at(18)))
        found = await store.find_by_date_range(at(9), at(18))
        assert [b.id for b in found] == ["EARLY", "LATE"]


class TestUpdate:
    @pytest.mark.asyncio
    async def test_patch_applied(self, store):
        await store.create(make_booking("A", at(10)))
        updated = await store.update("A", {"external_event_ref": "EVT-1"})
        assert updated.external_event_ref == "EVT-1"
        assert updated.updated_at > updated.created_at

    @pytest.mark.asyncio
    async def test_missing_booking(self, store):
        with pytest.raises(PersistenceError):
            await store.update("nope", {"customer_name": "X"})

    @pytest.mark.asyncio
    async def test_immutable_fields(self, store):
        await store.create(make_booking("A", at(10)))
        with pytest.raises(PersistenceError):
            await store.update("A", {"id": "B"})

    @pytest.mark.asyncio
    async def test_invalid_patch_leaves_record_untouched(self, store):
        await store.create(make_booking("A", at(10)))
        with pytest.raises(PersistenceError):
            await store.update("A", {"end_time": at(9)})
        assert (await store.find_by_id("A")).end_time == at(10, 30)


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.create(make_booking("A", at(10)))
        await store.delete("A")
        assert await store.find_by_id("A") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_delete_missing(self, store):
        with pytest.raises(PersistenceError):
            await store.delete("nope")

    @pytest.mark.asyncio
    async def test_reset(self, store):
        await store.create(make_booking("A", at(10, 0, DAY)))
        store.reset()
        assert len(store) == 0
