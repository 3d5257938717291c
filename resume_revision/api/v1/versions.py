# resume_revision/api/v1/versions.py
from fastapi import APIRouter, Depends, HTTPException

from resume_revision.api.v1.deps import get_session
from resume_revision.api.v1.schemas import RestoreRequest, RestoreResp, VersionCreate, VersionUpdate
from resume_revision.models.version import ResumeVersion, VersionListItem
from resume_revision.services.session import EditingSession

router = APIRouter()


@router.get("/resume-data/{resume_data_id}/versions")
async def list_versions(session: EditingSession = Depends(get_session)):
    items = [VersionListItem.model_validate(v.model_dump()) for v in session.snapshots.versions]
    return {"items": items, "count": len(items), "version_count": session.snapshots.version_count}


@router.post("/resume-data/{resume_data_id}/versions", response_model=ResumeVersion)
async def create_version(payload: VersionCreate, session: EditingSession = Depends(get_session)):
    version = await session.snapshots.save(payload.name, payload.notes)
    if version is None:
        raise HTTPException(status_code=503, detail="Failed to save version")
    return version


@router.get("/resume-data/{resume_data_id}/versions/{version_id}", response_model=ResumeVersion)
async def get_version(version_id: str, session: EditingSession = Depends(get_session)):
    version = session.snapshots.get(version_id)
    if version is None:
        raise HTTPException(status_code=404, detail="Version not found")
    return version


@router.put("/resume-data/{resume_data_id}/versions/{version_id}")
async def rename_version(version_id: str, payload: VersionUpdate, session: EditingSession = Depends(get_session)):
    if session.snapshots.get(version_id) is None:
        raise HTTPException(status_code=404, detail="Version not found")
    if not await session.snapshots.rename(version_id, payload.name, payload.notes):
        raise HTTPException(status_code=503, detail="Failed to update version")
    return session.snapshots.get(version_id)


@router.delete("/resume-data/{resume_data_id}/versions/{version_id}")
async def delete_version(version_id: str, session: EditingSession = Depends(get_session)):
    if session.snapshots.get(version_id) is None:
        raise HTTPException(status_code=404, detail="Not found or already deleted")
    if not await session.snapshots.delete(version_id):
        raise HTTPException(status_code=503, detail="Failed to delete version")
    return {"deleted": True}


@router.post("/resume-data/{resume_data_id}/versions/{version_id}/restore", response_model=RestoreResp)
async def restore_version(version_id: str, payload: RestoreRequest, session: EditingSession = Depends(get_session)):
    """
    Overwrite the working document with a saved version. With backup_first the
    current content is saved as a new version beforehand; if that fails nothing is restored.
    """
    if session.snapshots.get(version_id) is None:
        raise HTTPException(status_code=404, detail="Version not found")
    restored = await session.restore_version(version_id, backup_first=payload.backup_first)
    if restored is None:
        raise HTTPException(status_code=503, detail="Failed to restore version")
    return {"restored": True, "document": restored}
