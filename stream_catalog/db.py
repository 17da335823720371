from __future__ import annotations

import copy
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlparse

from bson import ObjectId
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import PyMongoError, WriteError


STREAMS = "streams"
USERS = "users"

# (collection, field) pairs with a unique index.
UNIQUE_FIELDS: Tuple[Tuple[str, str], ...] = ((USERS, "email"),)


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


class StoreError(Exception):
    """Any store failure; the message is the underlying driver message."""


class StoreValidationError(StoreError):
    """The store rejected a write (duplicate key, document validation)."""


class InvalidIdError(StoreError):
    """The identifier is not in the store's native format."""


def parse_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    s = str(value or "").strip()
    if not ObjectId.is_valid(s):
        raise InvalidIdError(f'Cast to ObjectId failed for value "{value}"')
    return ObjectId(s)


def _detect_backend(dsn: str) -> str:
    """Return 'mongo' or 'memory'."""
    s = (dsn or "").strip()
    if not s:
        raise ValueError("store dsn is empty (set MONGODB_URI, or memory:// for a throwaway store)")
    try:
        scheme = urlparse(s).scheme.lower()
    except Exception:
        scheme = ""
    if scheme in ("mongodb", "mongodb+srv"):
        return "mongo"
    if scheme == "memory":
        return "memory"
    raise ValueError(f"unsupported store dsn scheme: {scheme or s!r}")


class DocumentStore:
    """Collection-level CRUD for the `streams` and `users` collections.

    Ids are ObjectId strings. A malformed id raises InvalidIdError, an absent
    record is reported as None / False. Every call goes to the backend; there
    is no caching and nothing is retried.
    """

    async def find_all(self, kind: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def find_by_id(self, kind: str, id: Any) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def find_one(self, kind: str, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def insert(self, kind: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def update_by_id(self, kind: str, id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def delete_by_id(self, kind: str, id: Any) -> bool:
        raise NotImplementedError

    async def count(self, kind: str) -> int:
        raise NotImplementedError

    async def ensure_indexes(self) -> None:
        return None

    async def close(self) -> None:
        return None


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except WriteError as e:
        # DuplicateKeyError is a WriteError too.
        raise StoreValidationError(str(e.details.get("errmsg") if e.details else e)) from e
    except PyMongoError as e:
        raise StoreError(str(e)) from e


class MongoStore(DocumentStore):
    def __init__(self, dsn: str, database: str):
        self._client: AsyncMongoClient = AsyncMongoClient(dsn, tz_aware=True)
        self._db = self._client.get_default_database(default=database)

    async def find_all(self, kind: str) -> List[Dict[str, Any]]:
        with _translate_errors():
            return await self._db[kind].find({}).to_list(None)

    async def find_by_id(self, kind: str, id: Any) -> Optional[Dict[str, Any]]:
        oid = parse_id(id)
        with _translate_errors():
            return await self._db[kind].find_one({"_id": oid})

    async def find_one(self, kind: str, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with _translate_errors():
            return await self._db[kind].find_one(filter)

    async def insert(self, kind: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(fields)
        with _translate_errors():
            res = await self._db[kind].insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    async def update_by_id(self, kind: str, id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = parse_id(id)
        if not fields:
            # Mongo rejects an empty $set.
            return await self.find_by_id(kind, oid)
        with _translate_errors():
            return await self._db[kind].find_one_and_update(
                {"_id": oid},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )

    async def delete_by_id(self, kind: str, id: Any) -> bool:
        oid = parse_id(id)
        with _translate_errors():
            res = await self._db[kind].delete_one({"_id": oid})
        return res.deleted_count == 1

    async def count(self, kind: str) -> int:
        with _translate_errors():
            return int(await self._db[kind].count_documents({}))

    async def ensure_indexes(self) -> None:
        with _translate_errors():
            for kind, field in UNIQUE_FIELDS:
                await self._db[kind].create_index(field, unique=True)
        _debug(f"indexes ensured on database={self._db.name}")

    async def close(self) -> None:
        await self._client.close()


class MemoryStore(DocumentStore):
    """Process-local store with the same contract and unique-field rules.

    Used for tests and local development (MONGODB_URI=memory://). Documents
    are deep-copied in and out so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[ObjectId, Dict[str, Any]]] = {}

    def _coll(self, kind: str) -> Dict[ObjectId, Dict[str, Any]]:
        return self._collections.setdefault(kind, {})

    def _check_unique(self, kind: str, doc: Dict[str, Any]) -> None:
        for coll_kind, field in UNIQUE_FIELDS:
            if coll_kind != kind or field not in doc:
                continue
            for other in self._coll(kind).values():
                if other["_id"] != doc["_id"] and other.get(field) == doc[field]:
                    raise StoreValidationError(
                        f"E11000 duplicate key error collection: {kind} index: {field}_1 "
                        f'dup key: {{ {field}: "{doc[field]}" }}'
                    )

    @staticmethod
    def _matches(doc: Dict[str, Any], filter: Dict[str, Any]) -> bool:
        return all(doc.get(k) == v for k, v in filter.items())

    async def find_all(self, kind: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(d) for d in self._coll(kind).values()]

    async def find_by_id(self, kind: str, id: Any) -> Optional[Dict[str, Any]]:
        doc = self._coll(kind).get(parse_id(id))
        return copy.deepcopy(doc) if doc is not None else None

    async def find_one(self, kind: str, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for doc in self._coll(kind).values():
            if self._matches(doc, filter):
                return copy.deepcopy(doc)
        return None

    async def insert(self, kind: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        doc = copy.deepcopy(fields)
        doc["_id"] = parse_id(doc["_id"]) if "_id" in doc else ObjectId()
        if doc["_id"] in self._coll(kind):
            raise StoreValidationError(f"E11000 duplicate key error collection: {kind} index: _id_")
        self._check_unique(kind, doc)
        self._coll(kind)[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def update_by_id(self, kind: str, id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = parse_id(id)
        existing = self._coll(kind).get(oid)
        if existing is None:
            return None
        merged = {**existing, **copy.deepcopy(fields), "_id": oid}
        self._check_unique(kind, merged)
        self._coll(kind)[oid] = merged
        return copy.deepcopy(merged)

    async def delete_by_id(self, kind: str, id: Any) -> bool:
        return self._coll(kind).pop(parse_id(id), None) is not None

    async def count(self, kind: str) -> int:
        return len(self._coll(kind))


def open_store(dsn: str, database: str) -> DocumentStore:
    backend = _detect_backend(dsn)
    if backend == "mongo":
        return MongoStore(dsn, database)
    _debug("WARNING: using in-memory store (memory://); all data is lost on restart")
    return MemoryStore()
