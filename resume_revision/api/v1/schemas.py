# resume_revision/api/v1/schemas.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from resume_revision.models.analysis import AnalysisResult
from resume_revision.models.revision import FieldAIState


class VersionCreate(BaseModel):
    name: Optional[str] = None
    notes: str = ""


class VersionUpdate(BaseModel):
    name: Optional[str] = None
    notes: Optional[str] = None


class RestoreRequest(BaseModel):
    backup_first: bool = False


class RestoreResp(BaseModel):
    restored: bool
    document: Dict[str, Any]


class AnalysisRequest(BaseModel):
    job_description: Optional[str] = None


class AnalysisResp(BaseModel):
    status: str
    cache_hit: bool = False
    result: Optional[AnalysisResult] = None
    message: Optional[str] = None


class CandidateRequest(BaseModel):
    path: str
    provider_id: Optional[str] = None


class FieldRequest(BaseModel):
    path: str


class FieldStateResp(BaseModel):
    path: str
    state: Optional[FieldAIState] = None
    is_ai_content: bool = False
    can_undo: bool = False


class FieldStatesResp(BaseModel):
    items: Dict[str, FieldAIState] = Field(default_factory=dict)
