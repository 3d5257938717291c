# resume_revision/api/v1/analysis.py
from fastapi import APIRouter, Depends, HTTPException

from resume_revision.api.v1.deps import get_session
from resume_revision.api.v1.schemas import AnalysisRequest, AnalysisResp
from resume_revision.models.analysis import AnalysisResult
from resume_revision.services.session import EditingSession

router = APIRouter()


@router.post("/resume-data/{resume_data_id}/analysis", response_model=AnalysisResp)
async def run_analysis(payload: AnalysisRequest, session: EditingSession = Depends(get_session)):
    text = payload.job_description
    if text is None:
        text = session.document.get("job_description") or ""
    if not text.strip():
        raise HTTPException(status_code=400, detail="Please add a job description first.")
    outcome = await session.analyze(text)
    if outcome.status != "ok":
        raise HTTPException(status_code=502, detail=outcome.message or "Analysis failed")
    return outcome


@router.get("/resume-data/{resume_data_id}/analysis", response_model=AnalysisResult)
async def get_analysis(session: EditingSession = Depends(get_session)):
    if session.analysis.current is None:
        raise HTTPException(status_code=404, detail="No analysis yet")
    return session.analysis.current
