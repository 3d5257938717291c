# resume_revision/api/v1/deps.py
from fastapi import Depends, HTTPException

from resume_revision.repositories.record_store import RecordStore, RecordStoreError, get_record_store
from resume_revision.services.session import EditingSession, registry


async def get_session(resume_data_id: str, store: RecordStore = Depends(get_record_store)) -> EditingSession:
    try:
        session = await registry.get(store, resume_data_id)
    except RecordStoreError as exc:
        raise HTTPException(status_code=503, detail=f"Record store unavailable: {exc}")
    if session is None:
        raise HTTPException(status_code=404, detail="Resume data not found")
    return session
