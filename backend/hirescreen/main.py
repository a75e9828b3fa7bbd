"""
FastAPI application entry point.

A thin HTTP layer over job_service: job creation, resume upload, single and
bulk screening, ranking, skill-gap reports and manual lifecycle actions.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from . import job_service
from .config import ALLOWED_MIME_TYPES, CORS_ORIGINS, LOG_LEVEL, MAX_UPLOAD_BYTES
from .database import get_db, init_db
from .exceptions import NotFoundError, PersistenceError, ScreeningError, ValidationError
from .lifecycle import LifecycleController
from .resume_parser import guess_mime_type
from .schemas import CandidateRecord

# ── Logging ─────────────────────────────────────────────────────────────────
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Creating database tables...")
    init_db()
    yield
    logger.info("Shutting down.")


app = FastAPI(
    title="HireScreen Resume Screening API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
)


# ── Error mapping ───────────────────────────────────────────────────────────
@app.exception_handler(ValidationError)
async def validation_error(request, exc):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found(request, exc):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error(request, exc):
    logger.error("Persistence failure: %s", exc)
    return JSONResponse(status_code=500, content={"error": "could not save changes"})


@app.exception_handler(ScreeningError)
async def screening_error(request, exc):
    return JSONResponse(status_code=422, content={"error": str(exc)})


@app.exception_handler(Exception)
async def catch_all(request, exc):
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={"error": "internal server error", "detail": str(exc)},
    )


# ── Request bodies ──────────────────────────────────────────────────────────
class JobCreate(BaseModel):
    title: str
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    experience_min: int = Field(default=0, ge=0)
    experience_max: int = Field(default=10, ge=0)
    location: str = ""


class StatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = None
    changed_by: Optional[str] = None
    feedback: Optional[str] = None


class NoteCreate(BaseModel):
    content: str
    author: Optional[str] = None


# ── Serializers ─────────────────────────────────────────────────────────────
def _job_payload(job) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "requirements": job.requirements,
        "skills": job.skills,
        "preferred_skills": job.preferred_skills,
        "experience": {"min": job.experience_min, "max": job.experience_max},
        "location": job.location,
    }


def _candidate_payload(record: CandidateRecord) -> dict:
    return {
        "id": record.id,
        "job_id": record.job_id,
        "email": record.email,
        "phone": record.phone,
        "name": record.name,
        "score": record.score,
        "status": record.status.value,
        "screening_results": record.screening.to_dict() if record.screening else None,
        "status_history": [
            {"status": h.status.value, "changed_at": h.changed_at.isoformat(), "reason": h.reason}
            for h in record.status_history
        ],
        "notes": [
            {"content": n.content, "created_at": n.created_at.isoformat(), "created_by": n.created_by}
            for n in record.notes
        ],
        "communications": [
            {"type": c.type, "subject": c.subject, "status": c.status, "sent_at": c.sent_at.isoformat()}
            for c in record.communications
        ],
    }


# ── Routes ──────────────────────────────────────────────────────────────────

@app.get("/")
def health_check():
    return {"message": "HireScreen Resume Screening API", "status": "running"}


@app.post("/jobs", status_code=201)
def create_job(payload: JobCreate, db: Session = Depends(get_db)):
    job = job_service.create_job(db, **payload.model_dump())
    return _job_payload(job)


@app.get("/jobs/{job_id}")
def get_job(job_id: int, db: Session = Depends(get_db)):
    return _job_payload(job_service.get_job(db, job_id))


@app.post("/jobs/{job_id}/resumes", status_code=201)
async def upload_resume(
    job_id: int,
    file: UploadFile = File(...),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    mime_type = file.content_type
    if mime_type not in ALLOWED_MIME_TYPES:
        mime_type = guess_mime_type(file.filename or "")
    if mime_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"File {file.filename} has unsupported format. Allowed: PDF, DOCX",
        )

    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Resume file is too large")

    row = job_service.ingest_resume(
        db, job_id, data, mime_type,
        filename=file.filename, email=email, phone=phone, name=name,
    )
    return {
        "id": row.id,
        "email": row.email,
        "phone": row.phone,
        "skills": row.skills,
        "experience": row.experience,
        "education": row.education,
        "data_source": row.data_source,
        "status": row.status,
    }


@app.post("/screening/candidates/{candidate_id}")
def screen_candidate(
    candidate_id: int,
    db: Session = Depends(get_db),
    controller: LifecycleController = Depends(job_service.get_controller),
):
    record = job_service.screen_candidate(db, candidate_id, controller)
    return {"candidate": _candidate_payload(record), "screening_results": record.screening.to_dict()}


@app.post("/screening/jobs/{job_id}")
def screen_job(
    job_id: int,
    db: Session = Depends(get_db),
    controller: LifecycleController = Depends(job_service.get_controller),
):
    report = job_service.screen_job(db, job_id, controller)
    return {
        "message": report.message,
        "attempted": report.attempted,
        "succeeded": report.succeeded,
        "failed": report.failed,
        "outcomes": [
            {
                "candidate_id": o.candidate_id,
                "succeeded": o.succeeded,
                "overall_score": o.result.overall_score if o.result else None,
                "error": o.error,
            }
            for o in report.outcomes
        ],
    }


@app.get("/jobs/{job_id}/ranking")
def rank_job(job_id: int, db: Session = Depends(get_db)):
    return [
        {
            "candidate_id": row.id,
            "email": row.email,
            "status": row.status,
            "match_scores": ranked.result.to_dict(),
            "overall_score": ranked.overall_score,
        }
        for row, ranked in job_service.rank_job(db, job_id)
    ]


@app.get("/candidates/{candidate_id}/skill-gap")
def skill_gap(candidate_id: int, db: Session = Depends(get_db)):
    gap = job_service.skill_gap(db, candidate_id)
    return {
        "score": gap.score,
        "skills": [
            {"skill": s.skill, "match": s.matched, "importance": s.importance} for s in gap.skills
        ],
        "suggestions": [
            {"category": s.category, "suggestion": s.suggestion, "priority": s.priority}
            for s in gap.suggestions
        ],
    }


@app.put("/candidates/{candidate_id}/status")
def update_status(
    candidate_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    controller: LifecycleController = Depends(job_service.get_controller),
):
    record = job_service.update_status(
        db, candidate_id, payload.status,
        reason=payload.reason, changed_by=payload.changed_by,
        feedback=payload.feedback, controller=controller,
    )
    return _candidate_payload(record)


@app.post("/candidates/{candidate_id}/notes", status_code=201)
def add_note(
    candidate_id: int,
    payload: NoteCreate,
    db: Session = Depends(get_db),
    controller: LifecycleController = Depends(job_service.get_controller),
):
    record = job_service.add_note(db, candidate_id, payload.content, payload.author, controller)
    return _candidate_payload(record)


@app.get("/jobs/{job_id}/pipeline-stats")
def pipeline_stats(job_id: int, db: Session = Depends(get_db)):
    return job_service.job_pipeline_stats(db, job_id)
