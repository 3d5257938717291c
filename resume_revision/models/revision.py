# resume_revision/models/revision.py
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class RevisionStatus(str, Enum):
    OK = "ok"
    BUSY = "busy"
    TOO_SOON = "too_soon"
    NO_CANDIDATES = "no_candidates"
    STALE = "stale"
    NOOP = "noop"
    FAILED = "failed"


class FieldAIState(BaseModel):
    """Candidate list for one field; the last entry is always the original value."""
    candidates: List[Any] = Field(default_factory=list)
    cursor: int = 0
    loading: bool = False
    request_token: Optional[str] = None

    @property
    def original_index(self) -> int:
        return len(self.candidates) - 1

    @property
    def on_original(self) -> bool:
        return bool(self.candidates) and self.cursor == self.original_index


class AIEditHistory(BaseModel):
    previous: Any = None
    is_ai: bool = True


class ProviderFailure(BaseModel):
    provider_id: str
    provider_name: str = ""
    error: str


class CandidateResult(BaseModel):
    status: RevisionStatus
    path: str
    candidates: List[Any] = Field(default_factory=list)
    failures: List[ProviderFailure] = Field(default_factory=list)
    retry_after_ms: Optional[int] = None
    message: Optional[str] = None


class EditResult(BaseModel):
    status: RevisionStatus
    path: str
    value: Any = None
    message: Optional[str] = None
