"""Tests for the SQLite-backed record store."""

from __future__ import annotations

import asyncio

import pytest

from database.manager import PingLogRepository
from exceptions import DatabaseDuplicateError, DatabaseNotFoundError, InvalidFormatError


class TestRecordStore:
    def test_crud(self, open_store, make_check):
        async def scenario():
            async with open_store() as store:
                doc = make_check("k" * 20)
                await store.create("checks", doc["id"], doc)
                assert await store.read("checks", doc["id"]) == doc
                assert await store.list("checks") == [doc["id"]]
                assert await store.exists("checks", doc["id"])

                await store.update("checks", doc["id"], dict(doc, state="up"))
                assert (await store.read("checks", doc["id"]))["state"] == "up"

                await store.delete("checks", doc["id"])
                assert await store.list("checks") == []
                assert not await store.exists("checks", doc["id"])

        asyncio.run(scenario())

    def test_list_is_per_collection_and_ordered(self, open_store):
        async def scenario():
            async with open_store() as store:
                await store.create("checks", "b", {"id": "b"})
                await store.create("checks", "a", {"id": "a"})
                await store.create("users", "0412345678", {"phone": "0412345678"})
                return await store.list("checks"), await store.list("tokens")

        checks, tokens = asyncio.run(scenario())
        assert checks == ["b", "a"]
        assert tokens == []

    def test_duplicate_create(self, open_store):
        async def scenario():
            async with open_store() as store:
                await store.create("tokens", "t1", {"id": "t1"})
                with pytest.raises(DatabaseDuplicateError):
                    await store.create("tokens", "t1", {"id": "t1"})

        asyncio.run(scenario())

    @pytest.mark.parametrize("operation", ["read", "update", "delete"])
    def test_missing_key(self, open_store, operation):
        async def scenario():
            async with open_store() as store:
                args = ("checks", "missing")
                if operation == "update":
                    args += ({"id": "missing"},)
                with pytest.raises(DatabaseNotFoundError) as exc:
                    await getattr(store, operation)(*args)
                assert exc.value.details["key"] == "missing"

        asyncio.run(scenario())

    def test_unknown_collection(self, open_store):
        async def scenario():
            async with open_store() as store:
                with pytest.raises(InvalidFormatError):
                    await store.list("widgets")
                with pytest.raises(InvalidFormatError):
                    await store.create("widgets", "k", {})

        asyncio.run(scenario())

    def test_check_connection(self, open_store):
        async def scenario():
            async with open_store() as store:
                return await store.db.check_connection()

        assert asyncio.run(scenario()) is True


class TestPingLogRepository:
    def test_append_and_recent(self, open_store):
        async def scenario():
            async with open_store() as store:
                logs = PingLogRepository(store.db)
                await logs.append("c1", "up", False, response_code=200)
                await logs.append("c1", "down", True, error_kind="timeout")
                await logs.append("c2", "up", False, response_code=204)
                await logs.append("c1", "down", False, error_kind="transport", error_detail="x" * 500)
                return await logs.recent("c1", limit=10)

        entries = asyncio.run(scenario())
        assert [e.state for e in entries] == ["down", "down", "up"]
        assert entries[0].error_kind == "transport"
        assert len(entries[0].error_detail) == 200
        assert entries[1].alert is True
        assert entries[2].response_code == 200
