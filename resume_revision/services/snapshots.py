# resume_revision/services/snapshots.py
"""
Whole-document version snapshots for one resume.

Version numbers come from a running counter that only ever grows: deleting a
version never frees its number. The counter is persisted next to the versions
and, on load, taken as the larger of the stored counter and the highest
surviving version number.
"""
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from resume_revision.models.version import ResumeVersion
from resume_revision.repositories.record_store import (
    RESUME_DATA_COLLECTION,
    VERSION_COUNTERS_COLLECTION,
    VERSIONS_COLLECTION,
    RecordStore,
    RecordStoreError,
)

logger = logging.getLogger(__name__)

# fields that tie a document record to its owner; a restore keeps the live ones
IDENTITY_FIELDS = ("id", "resume_id")


def _now():
    return datetime.now(timezone.utc)


def default_version_name(number: int) -> str:
    return f"Version {number}"


class DocumentSnapshotStore:
    def __init__(self, store: RecordStore, resume_id: str, document_getter: Callable[[], Dict[str, Any]]):
        self._store = store
        self.resume_id = resume_id
        self._document = document_getter
        self._versions: List[ResumeVersion] = []
        self._count = 0

    @property
    def versions(self) -> List[ResumeVersion]:
        """Newest first."""
        return list(self._versions)

    @property
    def version_count(self) -> int:
        return self._count

    def get(self, version_id: str) -> Optional[ResumeVersion]:
        for v in self._versions:
            if v.id == version_id:
                return v
        return None

    async def load(self) -> bool:
        try:
            rows = await self._store.find(VERSIONS_COLLECTION, {"resume_id": self.resume_id})
            counter = await self._store.read(VERSION_COUNTERS_COLLECTION, self.resume_id)
        except RecordStoreError as exc:
            logger.warning("Failed to load versions for resume %s: %s", self.resume_id, exc)
            return False
        versions = []
        for row in rows:
            try:
                versions.append(ResumeVersion.model_validate(row))
            except ValidationError as exc:
                logger.warning("Skipping malformed version %s of resume %s: %s", row.get("id"), self.resume_id, exc)
        versions.sort(key=lambda v: (v.created_at, v.version_number), reverse=True)
        highest = max((v.version_number for v in versions), default=0)
        stored = int(counter.get("count", 0)) if counter else 0
        self._versions = versions
        self._count = max(highest, stored)
        return True

    async def _persist_counter(self) -> None:
        try:
            existing = await self._store.read(VERSION_COUNTERS_COLLECTION, self.resume_id)
            if existing:
                await self._store.update(VERSION_COUNTERS_COLLECTION, self.resume_id, {"count": self._count})
            else:
                await self._store.create(VERSION_COUNTERS_COLLECTION, {"id": self.resume_id, "count": self._count})
        except RecordStoreError as exc:
            # the highest version number still bounds the counter on the next load
            logger.warning("Failed to persist version counter for resume %s: %s", self.resume_id, exc)

    async def save(
        self,
        name: Optional[str] = None,
        notes: str = "",
        document: Optional[Dict[str, Any]] = None,
    ) -> Optional[ResumeVersion]:
        source = document if document is not None else self._document()
        if source is None:
            logger.warning("No document to snapshot for resume %s", self.resume_id)
            return None

        number = self._count + 1
        record = {
            "resume_id": self.resume_id,
            "version_number": number,
            "name": name or default_version_name(number),
            "notes": notes or "",
            "data_snapshot": copy.deepcopy(source),
            "created_at": _now(),
        }
        try:
            created = await self._store.create(VERSIONS_COLLECTION, record)
        except RecordStoreError:
            logger.exception("Failed to save version %s for resume %s", number, self.resume_id)
            return None

        version = ResumeVersion.model_validate(created)
        self._count = number
        self._versions.insert(0, version)
        await self._persist_counter()
        logger.info("Saved version %s (%s) for resume %s", number, version.id, self.resume_id)
        return version

    async def restore(self, version_id: str, backup_first: bool = False) -> Optional[Dict[str, Any]]:
        """
        Write the snapshot of `version_id` back as the live document and return it.
        Identity fields come from the live document, never from the snapshot.
        """
        version = self.get(version_id)
        if version is None:
            logger.warning("Restore requested for unknown version %s", version_id)
            return None
        live = self._document()
        if not live or not live.get("id"):
            logger.warning("Restore of %s without a persisted live document", version_id)
            return None

        if backup_first:
            backup = await self.save(f"Backup before restoring {version.name}")
            if backup is None:
                return None

        restored = copy.deepcopy(version.data_snapshot)
        for field in IDENTITY_FIELDS:
            restored[field] = live.get(field)
        try:
            await self._store.update(RESUME_DATA_COLLECTION, live["id"], restored)
        except RecordStoreError:
            logger.exception("Failed to restore version %s for resume %s", version_id, self.resume_id)
            return None
        logger.info("Restored version %s into document %s", version.version_number, live["id"])
        return restored

    async def rename(self, version_id: str, name: Optional[str] = None, notes: Optional[str] = None) -> bool:
        version = self.get(version_id)
        if version is None:
            return False
        # None keeps the stored value; an empty name falls back to the default
        changes = {
            "name": version.name if name is None else (name or default_version_name(version.version_number)),
            "notes": version.notes if notes is None else notes,
        }
        try:
            await self._store.update(VERSIONS_COLLECTION, version_id, changes)
        except RecordStoreError:
            logger.exception("Failed to rename version %s", version_id)
            return False
        self._versions = [v.model_copy(update=changes) if v.id == version_id else v for v in self._versions]
        return True

    async def delete(self, version_id: str) -> bool:
        if self.get(version_id) is None:
            logger.warning("Delete requested for version %s not owned by resume %s", version_id, self.resume_id)
            return False
        try:
            await self._store.delete(VERSIONS_COLLECTION, version_id)
        except RecordStoreError:
            logger.exception("Failed to delete version %s", version_id)
            return False
        self._versions = [v for v in self._versions if v.id != version_id]
        return True
