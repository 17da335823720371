"""MongoStore against a real server.

Set MONGODB_TEST_URI (e.g. mongodb://localhost:27017) to run the round-trip
tests; each one uses its own throwaway database. Error translation and the
unreachable-server case run without a server.
"""

import asyncio
import os

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError, WriteError

from stream_catalog.db import (
    STREAMS,
    USERS,
    InvalidIdError,
    MongoStore,
    StoreError,
    StoreValidationError,
    _translate_errors,
    open_store,
)

MONGODB_TEST_URI = os.environ.get("MONGODB_TEST_URI", "")

needs_mongo = pytest.mark.skipif(not MONGODB_TEST_URI, reason="MONGODB_TEST_URI not set")


def test_duplicate_key_becomes_validation_error():
    with pytest.raises(StoreValidationError, match="E11000"):
        with _translate_errors():
            raise DuplicateKeyError("E11000 dup", 11000, {"errmsg": "E11000 duplicate key error collection: users"})


def test_write_error_becomes_validation_error():
    with pytest.raises(StoreValidationError, match="Document failed validation"):
        with _translate_errors():
            raise WriteError("write failed", 121, {"errmsg": "Document failed validation"})


def test_other_driver_errors_become_store_errors():
    with pytest.raises(StoreError) as ei:
        with _translate_errors():
            raise ServerSelectionTimeoutError("localhost:1: connection refused")
    assert not isinstance(ei.value, StoreValidationError)
    assert "connection refused" in str(ei.value)


def test_open_store_picks_mongo():
    async def go():
        store = open_store("mongodb://127.0.0.1:1/?serverSelectionTimeoutMS=100", "db")
        try:
            assert isinstance(store, MongoStore)
        finally:
            await store.close()

    asyncio.run(go())


def test_unreachable_server_is_store_error():
    async def go():
        store = MongoStore("mongodb://127.0.0.1:1/?serverSelectionTimeoutMS=200", "db")
        try:
            with pytest.raises(StoreError):
                await store.find_all(STREAMS)
            # Malformed ids are rejected before any round trip.
            with pytest.raises(InvalidIdError):
                await store.delete_by_id(STREAMS, "nope")
        finally:
            await store.close()

    asyncio.run(go())


def _with_store(fn):
    async def go():
        name = f"stream_catalog_test_{ObjectId()}"
        store = MongoStore(MONGODB_TEST_URI, name)
        try:
            await fn(store)
        finally:
            await store._client.drop_database(name)
            await store.close()

    asyncio.run(go())


@needs_mongo
def test_round_trip():
    async def check(store):
        doc = await store.insert(STREAMS, {"title": "T", "tags": ["a"]})
        assert isinstance(doc["_id"], ObjectId)
        assert await store.find_by_id(STREAMS, str(doc["_id"])) == doc
        assert await store.find_all(STREAMS) == [doc]
        assert await store.count(STREAMS) == 1

        updated = await store.update_by_id(STREAMS, doc["_id"], {"title": "U"})
        assert updated == {**doc, "title": "U"}

        missing = ObjectId()
        assert await store.find_by_id(STREAMS, missing) is None
        assert await store.update_by_id(STREAMS, missing, {"title": "x"}) is None

        assert await store.delete_by_id(STREAMS, doc["_id"]) is True
        assert await store.delete_by_id(STREAMS, doc["_id"]) is False

    _with_store(check)


@needs_mongo
def test_empty_update_returns_record_unchanged():
    async def check(store):
        doc = await store.insert(STREAMS, {"title": "T"})
        assert await store.update_by_id(STREAMS, doc["_id"], {}) == doc
        assert await store.update_by_id(STREAMS, ObjectId(), {}) is None

    _with_store(check)


@needs_mongo
def test_unique_email_index():
    async def check(store):
        await store.ensure_indexes()
        await store.insert(USERS, {"email": "a@x.com"})
        with pytest.raises(StoreValidationError, match="E11000"):
            await store.insert(USERS, {"email": "a@x.com"})
        assert (await store.find_one(USERS, {"email": "a@x.com"}))["email"] == "a@x.com"

    _with_store(check)
