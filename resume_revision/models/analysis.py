# resume_revision/models/analysis.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AnalysisResult(BaseModel):
    score: Optional[float] = None
    extracted_keywords: List[str] = Field(default_factory=list)
    found_keywords: List[str] = Field(default_factory=list)
    missing_keywords: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    analyzed_at: datetime
    # exact inputs that produced this result; together they form the cache key
    analyzed_input_text: str
    analyzed_document_snapshot: Dict[str, Any] = Field(default_factory=dict)


class AnalysisOutcome(BaseModel):
    status: str  # "ok" | "failed"
    cache_hit: bool = False
    result: Optional[AnalysisResult] = None
    message: Optional[str] = None
