# resume_revision/services/analysis_cache.py
"""
Reuse of ATS analysis results.

A stored result is reused only when both inputs that produced it are
unchanged: the job description text, and the analysed subset of the resume
compared by recursive structural equality (order-sensitive for lists). Any
difference means a full recomputation; results are never patched.
"""
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from resume_revision.models.analysis import AnalysisOutcome, AnalysisResult
from resume_revision.repositories.record_store import RESUME_DATA_COLLECTION, RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

ANALYZED_SECTIONS = {
    "professional_summary": "",
    "work_experience": [],
    "skills": [],
    "education": [],
}

RESULT_FIELDS = ("score", "extracted_keywords", "found_keywords", "missing_keywords", "recommendations")

ComputeFn = Callable[[str, Dict[str, Any]], Awaitable[Dict[str, Any]]]


def document_for_comparison(document: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for name, empty in ANALYZED_SECTIONS.items():
        value = document.get(name)
        out[name] = copy.deepcopy(value if value is not None else empty)
    return out


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality over plain data. bool never equals a number."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, dict):
        if not isinstance(b, dict) or a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)):
        if not isinstance(b, (list, tuple)) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


def stored_result(document: Dict[str, Any]) -> Optional[AnalysisResult]:
    raw = document.get("ats_analysis_results")
    if not raw:
        return None
    try:
        return AnalysisResult.model_validate(raw)
    except ValidationError:
        # results saved before inputs were recorded cannot be cache hits
        logger.debug("Ignoring stored analysis without cache key for document %s", document.get("id"))
        return None


class AnalysisCache:
    def __init__(self, store: Optional[RecordStore] = None):
        self._store = store
        self.current: Optional[AnalysisResult] = None
        self.last_cache_hit = False

    async def get_or_compute(self, input_text: str, document: Dict[str, Any], compute_fn: ComputeFn) -> AnalysisOutcome:
        text = (input_text or "").strip()
        if not text:
            return AnalysisOutcome(status="failed", message="Please add a job description first.")

        candidate = document_for_comparison(document)
        existing = stored_result(document)
        if (
            existing is not None
            and existing.analyzed_input_text == text
            and deep_equal(existing.analyzed_document_snapshot, candidate)
        ):
            self.current = existing
            self.last_cache_hit = True
            logger.info("Reusing cached analysis for document %s", document.get("id"))
            return AnalysisOutcome(status="ok", cache_hit=True, result=existing)

        try:
            raw = await compute_fn(text, document)
            result = AnalysisResult(
                **{k: raw[k] for k in RESULT_FIELDS if raw.get(k) is not None},
                analyzed_at=datetime.now(timezone.utc),
                analyzed_input_text=text,
                analyzed_document_snapshot=candidate,
            )
        except Exception as exc:
            logger.exception("Analysis for document %s failed", document.get("id"))
            return AnalysisOutcome(status="failed", message=f"Failed to analyze ATS compatibility: {exc}")

        payload = result.model_dump(mode="json")
        if self._store is not None and document.get("id"):
            try:
                await self._store.update(
                    RESUME_DATA_COLLECTION,
                    document["id"],
                    {"ats_analysis_results": payload, "job_description": text},
                )
            except RecordStoreError:
                logger.exception("Persisting analysis for document %s failed", document.get("id"))
                return AnalysisOutcome(status="failed", message="Saving the analysis failed.")

        document["ats_analysis_results"] = payload
        document["job_description"] = text
        self.current = result
        self.last_cache_hit = False
        return AnalysisOutcome(status="ok", cache_hit=False, result=result)
