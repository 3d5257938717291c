# resume_revision/models/version.py
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field


class ResumeVersion(BaseModel):
    id: str
    resume_id: str
    version_number: int
    name: str
    notes: str = ""
    data_snapshot: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class VersionListItem(BaseModel):
    id: str
    version_number: int
    name: str
    notes: str = ""
    created_at: datetime
