# resume_revision/services/session.py
"""
One editing session per resume document: the working copy plus the field
version manager, snapshot store and analysis cache that operate on it.
"""
import asyncio
import logging
from collections import OrderedDict
from typing import Any, Dict, Optional

from resume_revision.core.config import settings
from resume_revision.models.analysis import AnalysisOutcome
from resume_revision.models.resume import normalize_document
from resume_revision.models.revision import CandidateResult
from resume_revision.repositories.record_store import RESUME_DATA_COLLECTION, RecordStore, RecordStoreError
from resume_revision.services import analysis
from resume_revision.services.analysis_cache import AnalysisCache, stored_result
from resume_revision.services.fanout import ProviderFanout, load_providers, process_throttle
from resume_revision.services.field_path import FieldPathError, parse_path
from resume_revision.services.field_versions import FieldVersionManager
from resume_revision.services.prompts import GenerationContext
from resume_revision.services.snapshots import DocumentSnapshotStore

logger = logging.getLogger(__name__)


class EditingSession:
    def __init__(self, store: RecordStore, document: Dict[str, Any], fanout: Optional[ProviderFanout] = None):
        self.store = store
        self.document = document
        self.fanout = fanout or ProviderFanout(lambda: load_providers(store), throttle=process_throttle)
        if settings.AI_THROTTLE_SCOPE == "session":
            throttle_key = f"session:{document.get('id')}"
        else:
            throttle_key = "global"
        self.fields = FieldVersionManager(document, self.fanout, persist=self._persist_document, throttle_key=throttle_key)
        self.snapshots = DocumentSnapshotStore(store, document.get("resume_id") or document.get("id"), lambda: self.document)
        self.analysis = AnalysisCache(store)
        self.analysis.current = stored_result(document)

    @classmethod
    async def load(cls, store: RecordStore, resume_data_id: str, **kwargs) -> Optional["EditingSession"]:
        record = await store.read(RESUME_DATA_COLLECTION, resume_data_id)
        if record is None:
            return None
        session = cls(store, normalize_document(record), **kwargs)
        await session.snapshots.load()
        return session

    async def _persist_document(self, document: Dict[str, Any]) -> None:
        await self.store.update(RESUME_DATA_COLLECTION, document["id"], document)

    async def save(self) -> bool:
        try:
            await self._persist_document(self.document)
            return True
        except RecordStoreError:
            logger.exception("Saving document %s failed", self.document.get("id"))
            return False

    def adopt(self, document: Dict[str, Any]) -> None:
        """Make `document` the working copy, e.g. after a restore."""
        self.document = document
        self.fields.reset(document)
        self.analysis.current = stored_result(document)
        self.analysis.last_cache_hit = False

    async def restore_version(self, version_id: str, backup_first: bool = False) -> Optional[Dict[str, Any]]:
        restored = await self.snapshots.restore(version_id, backup_first=backup_first)
        if restored is not None:
            self.adopt(restored)
        return restored

    def generation_context(self, path: str) -> GenerationContext:
        results = self.document.get("ats_analysis_results") or {}
        context = GenerationContext(
            job_description=self.document.get("job_description") or "",
            missing_keywords=list(results.get("missing_keywords") or []),
        )
        try:
            parts = parse_path(path)
            if parts[0] == "skills" and len(parts) > 1 and isinstance(parts[1], int):
                context.category = self.document["skills"][parts[1]].get("category") or None
        except (FieldPathError, IndexError, KeyError, TypeError):
            pass
        return context

    async def request_candidates(self, path: str, provider_id: Optional[str] = None) -> CandidateResult:
        return await self.fields.request_candidates(path, context=self.generation_context(path), provider_id=provider_id)

    async def analyze(self, input_text: Optional[str] = None) -> AnalysisOutcome:
        text = input_text if input_text is not None else self.document.get("job_description") or ""

        async def compute(job_text: str, document: Dict[str, Any]) -> Dict[str, Any]:
            providers = await load_providers(self.store)
            return await analysis.analyze(job_text, document, providers)

        return await self.analysis.get_or_compute(text, self.document, compute)


class SessionRegistry:
    """Least-recently-used sessions, at most `max_sessions` of them."""

    def __init__(self, max_sessions: Optional[int] = None):
        self.max_sessions = settings.SESSION_CACHE_SIZE if max_sessions is None else max_sessions
        self._sessions: "OrderedDict[str, EditingSession]" = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, resume_data_id: str) -> bool:
        return resume_data_id in self._sessions

    async def get(self, store: RecordStore, resume_data_id: str) -> Optional[EditingSession]:
        session = self._sessions.get(resume_data_id)
        if session is not None:
            self._sessions.move_to_end(resume_data_id)
            return session
        async with self._lock:
            session = self._sessions.get(resume_data_id)
            if session is None:
                session = await EditingSession.load(store, resume_data_id)
                if session is None:
                    return None
                self._sessions[resume_data_id] = session
                while len(self._sessions) > max(1, self.max_sessions):
                    evicted, _ = self._sessions.popitem(last=False)
                    logger.debug("Evicted editing session %s", evicted)
        return session

    def drop(self, resume_data_id: str) -> None:
        self._sessions.pop(resume_data_id, None)

    def clear(self) -> None:
        self._sessions.clear()


registry = SessionRegistry()
