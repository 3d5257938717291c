# resume_revision/services/field_versions.py
"""
Per-field AI candidate lifecycle over one working document.

State per field (keyed by canonical FieldPath):

  Idle -> Requesting -> HasCandidates -> Idle-AI   (accept a generated candidate)
                                      -> Idle      (accept the trailing original)
  Idle-AI -> Idle                                  (undo)

FieldAIState holds the candidates with the current value appended last, so
"keep original" is just another cursor position. AIEditHistory keeps exactly
one pre-acceptance value per field; accepting again replaces it.

Every public coroutine returns a result model; failures are logged and
reported, never raised into the caller, and a failed persist rolls the
document back to its pre-call value.
"""
import copy
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from resume_revision.models.revision import (
    AIEditHistory,
    CandidateResult,
    EditResult,
    FieldAIState,
    RevisionStatus,
)
from resume_revision.services.fanout import FanoutStatus, ProviderFanout
from resume_revision.services.field_path import FieldPathError, canonical_path, get_value, set_value
from resume_revision.services.prompts import (
    GenerationContext,
    build_system_prompt,
    build_user_prompt,
    coerce_candidate,
    content_for_prompt,
)

logger = logging.getLogger(__name__)

PersistFn = Callable[[Dict[str, Any]], Awaitable[Any]]


class FieldVersionManager:
    def __init__(
        self,
        document: Dict[str, Any],
        fanout: ProviderFanout,
        persist: Optional[PersistFn] = None,
        throttle_key: str = "global",
    ):
        self.document = document
        self._fanout = fanout
        self._persist = persist
        self._throttle_key = throttle_key
        self._states: Dict[str, FieldAIState] = {}
        self._history: Dict[str, AIEditHistory] = {}

    def reset(self, document: Dict[str, Any]) -> None:
        """Switch to a new working document; per-field state referred to the old one."""
        self.document = document
        self._states.clear()
        self._history.clear()

    def _key(self, path: str) -> Optional[str]:
        try:
            return canonical_path(path)
        except FieldPathError as exc:
            logger.warning("Ignoring malformed field path %r: %s", path, exc)
            return None

    async def _save(self) -> bool:
        if self._persist is None:
            return True
        try:
            await self._persist(self.document)
            return True
        except Exception:
            logger.exception("Persisting working document %s failed", self.document.get("id"))
            return False

    # --- requests -----------------------------------------------------

    async def request_candidates(
        self,
        path: str,
        source_text: Optional[str] = None,
        context: Optional[GenerationContext] = None,
        provider_id: Optional[str] = None,
    ) -> CandidateResult:
        try:
            key = canonical_path(path)
            original = get_value(self.document, key)
        except FieldPathError as exc:
            logger.warning("Candidate request for %r rejected: %s", path, exc)
            return CandidateResult(status=RevisionStatus.FAILED, path=path, message=str(exc))

        previous_state = self._states.get(key)
        if previous_state is not None and previous_state.loading:
            return CandidateResult(
                status=RevisionStatus.BUSY, path=key, message="A request for this field is already running."
            )

        token = uuid.uuid4().hex
        self._states[key] = FieldAIState(loading=True, request_token=token)
        content = source_text if source_text is not None else content_for_prompt(key, original)
        context = context or GenerationContext()

        def prompt_for(provider):
            return (
                build_system_prompt(key, context),
                build_user_prompt(key, content, context, provider.custom_prompt),
            )

        try:
            outcome = await self._fanout.request(prompt_for, throttle_key=self._throttle_key, provider_id=provider_id)
        except Exception as exc:
            logger.exception("Candidate generation for %s failed", key)
            self._drop_if_current(key, token)
            return CandidateResult(status=RevisionStatus.FAILED, path=key, message=str(exc))

        current = self._states.get(key)
        if current is None or current.request_token != token:
            logger.info("Discarding stale candidates for %s", key)
            return CandidateResult(status=RevisionStatus.STALE, path=key, message="Request was superseded.")

        if outcome.status == FanoutStatus.TOO_SOON:
            if previous_state is not None:
                self._states[key] = previous_state
            else:
                del self._states[key]
            return CandidateResult(
                status=RevisionStatus.TOO_SOON, path=key, retry_after_ms=outcome.retry_after_ms, message=outcome.message
            )

        if outcome.status in (FanoutStatus.NO_PROVIDERS, FanoutStatus.FAILED):
            del self._states[key]
            status = RevisionStatus.NO_CANDIDATES if outcome.status == FanoutStatus.NO_PROVIDERS else RevisionStatus.FAILED
            return CandidateResult(status=status, path=key, message=outcome.message)

        try:
            original = get_value(self.document, key)
        except FieldPathError as exc:
            del self._states[key]
            return CandidateResult(status=RevisionStatus.STALE, path=key, message=str(exc))

        candidates = []
        for text in outcome.texts:
            value = coerce_candidate(original, text)
            if value is not None:
                candidates.append(value)
        if not candidates:
            del self._states[key]
            return CandidateResult(
                status=RevisionStatus.NO_CANDIDATES,
                path=key,
                failures=outcome.failures,
                message=outcome.message or "No suggestions were generated.",
            )

        candidates.append(copy.deepcopy(original))
        self._states[key] = FieldAIState(candidates=candidates, cursor=0, loading=False, request_token=token)
        return CandidateResult(
            status=RevisionStatus.OK,
            path=key,
            candidates=copy.deepcopy(candidates),
            failures=outcome.failures,
            message=outcome.message,
        )

    def _drop_if_current(self, key: str, token: str) -> None:
        state = self._states.get(key)
        if state is not None and state.request_token == token:
            del self._states[key]

    def cancel(self, path: str) -> bool:
        key = self._key(path)
        return key is not None and self._states.pop(key, None) is not None

    # --- navigation ---------------------------------------------------

    def _step(self, path: str, delta: int) -> EditResult:
        key = self._key(path)
        state = self._states.get(key) if key else None
        if state is None or not state.candidates:
            return EditResult(status=RevisionStatus.NOOP, path=key or path, message="No candidates for this field.")
        state.cursor = (state.cursor + delta) % len(state.candidates)
        return EditResult(status=RevisionStatus.OK, path=key, value=copy.deepcopy(state.candidates[state.cursor]))

    def next(self, path: str) -> EditResult:
        return self._step(path, 1)

    def previous(self, path: str) -> EditResult:
        return self._step(path, -1)

    def current(self, path: str) -> Any:
        key = self._key(path)
        state = self._states.get(key) if key else None
        if state is None or not state.candidates:
            return None
        return copy.deepcopy(state.candidates[state.cursor])

    # --- accept / undo ------------------------------------------------

    async def accept(self, path: str) -> EditResult:
        key = self._key(path)
        state = self._states.get(key) if key else None
        if state is None or state.loading or not state.candidates:
            logger.warning("accept(%s) with no candidates; ignoring", path)
            return EditResult(status=RevisionStatus.NOOP, path=key or path, message="No candidates to accept.")

        if state.on_original:
            del self._states[key]
            return EditResult(
                status=RevisionStatus.OK, path=key, value=copy.deepcopy(state.candidates[-1]), message="Kept original."
            )

        try:
            before = copy.deepcopy(get_value(self.document, key))
            chosen = copy.deepcopy(state.candidates[state.cursor])
            set_value(self.document, key, chosen)
        except FieldPathError as exc:
            logger.warning("accept(%s) failed: %s", key, exc)
            return EditResult(status=RevisionStatus.FAILED, path=key, message=str(exc))

        prior_history = self._history.get(key)
        self._history[key] = AIEditHistory(previous=before, is_ai=True)
        del self._states[key]

        if not await self._save():
            set_value(self.document, key, before)
            if prior_history is not None:
                self._history[key] = prior_history
            else:
                self._history.pop(key, None)
            self._states.setdefault(key, state)
            return EditResult(status=RevisionStatus.FAILED, path=key, message="Saving the change failed.")
        return EditResult(status=RevisionStatus.OK, path=key, value=copy.deepcopy(chosen))

    async def undo(self, path: str) -> EditResult:
        key = self._key(path)
        history = self._history.get(key) if key else None
        if history is None:
            logger.warning("undo(%s) with no AI edit history; ignoring", path)
            return EditResult(status=RevisionStatus.NOOP, path=key or path, message="Nothing to undo.")

        try:
            ai_value = copy.deepcopy(get_value(self.document, key))
            set_value(self.document, key, copy.deepcopy(history.previous))
        except FieldPathError as exc:
            logger.warning("undo(%s) failed: %s", key, exc)
            return EditResult(status=RevisionStatus.FAILED, path=key, message=str(exc))
        del self._history[key]

        if not await self._save():
            set_value(self.document, key, ai_value)
            self._history[key] = history
            return EditResult(status=RevisionStatus.FAILED, path=key, message="Saving the change failed.")

        state = self._states.get(key)
        if state is not None and state.candidates:
            # keep the trailing slot equal to what the field now holds
            state.candidates[-1] = copy.deepcopy(history.previous)
        return EditResult(status=RevisionStatus.OK, path=key, value=copy.deepcopy(history.previous))

    # --- queries ------------------------------------------------------

    def is_ai_content(self, path: str) -> bool:
        key = self._key(path)
        history = self._history.get(key) if key else None
        return bool(history and history.is_ai)

    def can_undo(self, path: str) -> bool:
        key = self._key(path)
        return key is not None and key in self._history

    def state(self, path: str) -> Optional[FieldAIState]:
        key = self._key(path)
        state = self._states.get(key) if key else None
        return state.model_copy(deep=True) if state is not None else None

    def states(self) -> Dict[str, FieldAIState]:
        return {k: v.model_copy(deep=True) for k, v in self._states.items()}
