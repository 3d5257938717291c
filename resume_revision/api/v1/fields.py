# resume_revision/api/v1/fields.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from resume_revision.api.v1.deps import get_session
from resume_revision.api.v1.schemas import CandidateRequest, FieldRequest, FieldStateResp, FieldStatesResp
from resume_revision.models.revision import CandidateResult, EditResult, RevisionStatus
from resume_revision.services.field_path import FieldPathError, canonical_path
from resume_revision.services.session import EditingSession

router = APIRouter()

STATUS_CODES = {
    RevisionStatus.OK: 200,
    RevisionStatus.NOOP: 200,
    RevisionStatus.NO_CANDIDATES: 200,
    RevisionStatus.BUSY: 409,
    RevisionStatus.STALE: 409,
    RevisionStatus.TOO_SOON: 429,
    RevisionStatus.FAILED: 502,
}


def _respond(result) -> JSONResponse:
    headers = {}
    if isinstance(result, CandidateResult) and result.retry_after_ms:
        headers["Retry-After"] = str(max(1, -(-result.retry_after_ms // 1000)))
    return JSONResponse(
        status_code=STATUS_CODES.get(result.status, 200),
        content=result.model_dump(mode="json"),
        headers=headers,
    )


@router.post("/resume-data/{resume_data_id}/fields/candidates", response_model=CandidateResult)
async def request_candidates(payload: CandidateRequest, session: EditingSession = Depends(get_session)):
    result = await session.request_candidates(payload.path, provider_id=payload.provider_id)
    return _respond(result)


@router.post("/resume-data/{resume_data_id}/fields/next", response_model=EditResult)
async def next_candidate(payload: FieldRequest, session: EditingSession = Depends(get_session)):
    return _respond(session.fields.next(payload.path))


@router.post("/resume-data/{resume_data_id}/fields/previous", response_model=EditResult)
async def previous_candidate(payload: FieldRequest, session: EditingSession = Depends(get_session)):
    return _respond(session.fields.previous(payload.path))


@router.post("/resume-data/{resume_data_id}/fields/accept", response_model=EditResult)
async def accept_candidate(payload: FieldRequest, session: EditingSession = Depends(get_session)):
    return _respond(await session.fields.accept(payload.path))


@router.post("/resume-data/{resume_data_id}/fields/undo", response_model=EditResult)
async def undo_field(payload: FieldRequest, session: EditingSession = Depends(get_session)):
    return _respond(await session.fields.undo(payload.path))


@router.post("/resume-data/{resume_data_id}/fields/cancel")
async def cancel_request(payload: FieldRequest, session: EditingSession = Depends(get_session)):
    return {"cancelled": session.fields.cancel(payload.path)}


@router.get("/resume-data/{resume_data_id}/fields/state", response_model=FieldStateResp)
async def field_state(path: str = Query(...), session: EditingSession = Depends(get_session)):
    try:
        key = canonical_path(path)
    except FieldPathError as exc:
        return JSONResponse(status_code=400, content={"detail": str(exc)})
    return {
        "path": key,
        "state": session.fields.state(key),
        "is_ai_content": session.fields.is_ai_content(key),
        "can_undo": session.fields.can_undo(key),
    }


@router.get("/resume-data/{resume_data_id}/fields", response_model=FieldStatesResp)
async def field_states(session: EditingSession = Depends(get_session)):
    return {"items": session.fields.states()}
