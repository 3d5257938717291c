# resume_revision/models/resume.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class WorkEntry(BaseModel):
    company: str = ""
    position: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    current: bool = False
    responsibilities: List[str] = Field(default_factory=list)


class SkillGroup(BaseModel):
    category: str = ""
    items: List[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    institution: str = ""
    degree: str = ""
    field_of_study: str = ""
    location: str = ""
    graduation_date: str = ""
    gpa: str = ""
    honors: str = ""


class ResumeDocument(BaseModel):
    """The editable resume content; `id` is the record id, `resume_id` the parent resume."""
    model_config = {"extra": "allow"}

    id: Optional[str] = None
    resume_id: Optional[str] = None
    personal_info: Dict[str, Any] = Field(default_factory=dict)
    professional_summary: str = ""
    work_experience: List[WorkEntry] = Field(default_factory=list)
    skills: List[SkillGroup] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    template: Optional[str] = None
    job_description: str = ""
    # validated lazily, see analysis_cache.stored_result
    ats_analysis_results: Optional[Dict[str, Any]] = None


def normalize_document(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a raw record and return it as plain JSON-compatible data."""
    return ResumeDocument.model_validate(data).model_dump(mode="json")
