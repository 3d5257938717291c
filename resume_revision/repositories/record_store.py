# resume_revision/repositories/record_store.py
"""
Generic record persistence used by the revision engine.

Every record is a plain dict with a string ``id``. Two backends:

- MongoRecordStore: Motor collections, ``_id`` holds the record id.
- InMemoryRecordStore: dict of collections, used in tests and when
  RECORD_STORE=memory.

Backend failures are raised as RecordStoreError so callers can tell store
I/O apart from their own bugs.
"""
import copy
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from resume_revision.core.config import settings

logger = logging.getLogger(__name__)

RESUME_DATA_COLLECTION = "resume_data"
VERSIONS_COLLECTION = "resume_versions"
VERSION_COUNTERS_COLLECTION = "resume_version_counters"
PROVIDERS_COLLECTION = "ai_providers"


class RecordStoreError(Exception):
    pass


class RecordStore(Protocol):
    async def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    async def read(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]: ...

    async def update(self, collection: str, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    async def delete(self, collection: str, record_id: str) -> bool: ...

    async def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]: ...


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_id(doc):
    # expose Mongo's _id as id
    if not doc:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc["_id"])
        del doc["_id"]
    return doc


class MongoRecordStore:
    def __init__(self, db):
        self._db = db

    async def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(data)
        record_id = str(payload.pop("id", None) or _new_id())
        payload["_id"] = record_id
        try:
            await self._db[collection].insert_one(payload)
        except Exception as exc:
            raise RecordStoreError(f"create in {collection} failed: {exc}") from exc
        return _to_id(payload)

    async def read(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            doc = await self._db[collection].find_one({"_id": record_id})
        except Exception as exc:
            raise RecordStoreError(f"read {collection}/{record_id} failed: {exc}") from exc
        return _to_id(doc)

    async def update(self, collection: str, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        changes = {k: v for k, v in data.items() if k not in ("id", "_id")}
        try:
            res = await self._db[collection].update_one({"_id": record_id}, {"$set": changes})
        except Exception as exc:
            raise RecordStoreError(f"update {collection}/{record_id} failed: {exc}") from exc
        if res.matched_count == 0:
            raise RecordStoreError(f"update {collection}/{record_id} failed: record not found")
        return await self.read(collection, record_id)

    async def delete(self, collection: str, record_id: str) -> bool:
        try:
            res = await self._db[collection].delete_one({"_id": record_id})
        except Exception as exc:
            raise RecordStoreError(f"delete {collection}/{record_id} failed: {exc}") from exc
        return res.deleted_count > 0

    async def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        out = []
        try:
            cur = self._db[collection].find(filters or {})
            async for d in cur:
                out.append(_to_id(d))
        except Exception as exc:
            raise RecordStoreError(f"find in {collection} failed: {exc}") from exc
        return out


class InMemoryRecordStore:
    """Dict-backed store. Records are deep-copied in and out so callers never share state with it."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._data.setdefault(name, {})

    async def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = copy.deepcopy(data)
        record["id"] = str(record.get("id") or _new_id())
        self._collection(collection)[record["id"]] = record
        return copy.deepcopy(record)

    async def read(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        record = self._collection(collection).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def update(self, collection: str, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = self._collection(collection).get(record_id)
        if record is None:
            raise RecordStoreError(f"update {collection}/{record_id} failed: record not found")
        for k, v in data.items():
            if k != "id":
                record[k] = copy.deepcopy(v)
        return copy.deepcopy(record)

    async def delete(self, collection: str, record_id: str) -> bool:
        return self._collection(collection).pop(record_id, None) is not None

    async def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        matched = []
        for record in self._collection(collection).values():
            if all(record.get(k) == v for k, v in (filters or {}).items()):
                matched.append(copy.deepcopy(record))
        return matched


_memory_store: Optional[InMemoryRecordStore] = None


def get_record_store() -> RecordStore:
    """FastAPI dependency returning the configured backend."""
    global _memory_store
    if settings.RECORD_STORE == "memory":
        if _memory_store is None:
            _memory_store = InMemoryRecordStore()
        return _memory_store
    from resume_revision.db.mongo import get_db
    return MongoRecordStore(get_db())
