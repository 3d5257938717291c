# resume_revision/main.py
import logging

from fastapi import FastAPI

from resume_revision.api.v1.analysis import router as analysis_router
from resume_revision.api.v1.fields import router as fields_router
from resume_revision.api.v1.versions import router as versions_router
from resume_revision.core.config import settings
from resume_revision.db.mongo import close_db, init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Resume Revision API")

app.include_router(versions_router, prefix="/api/v1")
app.include_router(analysis_router, prefix="/api/v1")
app.include_router(fields_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}


@app.on_event("startup")
async def startup_event():
    await init_db()


@app.on_event("shutdown")
async def shutdown_event():
    close_db()
