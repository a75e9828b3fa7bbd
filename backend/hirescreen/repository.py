"""
Conversion between ORM rows and screening records, and the SQL-backed
CandidateStore used by bulk screening.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .database import SessionLocal
from .exceptions import PersistenceError
from .models import Candidate, JobPosting
from .schemas import (
    CandidateFacts, CandidateRecord, CandidateStatus, Communication,
    ExperienceBand, JobSpec, Note, ScreeningResult, StatusChange,
)

logger = logging.getLogger(__name__)


def _when(value: Any) -> datetime:
    return value if isinstance(value, datetime) else datetime.fromisoformat(value)


# ── Jobs ────────────────────────────────────────────────────────────────────

def job_to_spec(job: JobPosting) -> JobSpec:
    return JobSpec(
        id=job.id,
        title=job.title,
        description=job.description or "",
        requirements=tuple(job.requirements or ()),
        skills=tuple(job.skills or ()),
        preferred_skills=tuple(job.preferred_skills or ()),
        experience=ExperienceBand(
            job.experience_min or 0,
            job.experience_max if job.experience_max is not None else 10,
        ),
        location=job.location or "",
    )


# ── Candidates: row → record ────────────────────────────────────────────────

def facts_from_row(row: Candidate) -> Optional[CandidateFacts]:
    """The stored extraction snapshot, or None if it is unreadable."""
    if not isinstance(row.skills, list) or not isinstance(row.extracted_text, str):
        logger.warning("Candidate %s has a malformed resume snapshot", row.id)
        return None
    return CandidateFacts(
        text=row.extracted_text,
        email=row.email or "",
        phone=row.phone or "",
        skills=tuple(str(s) for s in row.skills),
        experience_years=int(row.experience or 0),
        education=row.education or "",
    )


def candidate_to_record(row: Candidate) -> CandidateRecord:
    screening = None
    if isinstance(row.screening_results, dict):
        screening = ScreeningResult.from_dict(row.screening_results)

    return CandidateRecord(
        id=row.id,
        job_id=row.job_id,
        email=row.email,
        phone=row.phone,
        name=row.name,
        facts=facts_from_row(row),
        screening=screening,
        score=row.score or 0,
        status=CandidateStatus.parse(row.status or CandidateStatus.NEW.value),
        status_history=tuple(
            StatusChange(
                status=CandidateStatus.parse(h["status"]),
                changed_at=_when(h["changed_at"]),
                reason=h.get("reason"),
                changed_by=h.get("changed_by"),
            )
            for h in row.status_history or ()
        ),
        notes=tuple(
            Note(n["content"], _when(n["created_at"]), n.get("created_by"))
            for n in row.notes or ()
        ),
        communications=tuple(
            Communication(
                type=c["type"],
                subject=c.get("subject", ""),
                sent_at=_when(c["sent_at"]),
                status=c.get("status", "sent"),
                message=c.get("message", ""),
                metadata=c.get("metadata") or {},
            )
            for c in row.communications or ()
        ),
    )


# ── Candidates: record → row ────────────────────────────────────────────────

def history_to_json(entries) -> list[dict]:
    return [
        {
            "status": h.status.value,
            "changed_at": h.changed_at.isoformat(),
            "reason": h.reason,
            "changed_by": h.changed_by,
        }
        for h in entries
    ]


def notes_to_json(notes) -> list[dict]:
    return [
        {"content": n.content, "created_at": n.created_at.isoformat(), "created_by": n.created_by}
        for n in notes
    ]


def communications_to_json(communications) -> list[dict]:
    return [
        {
            "type": c.type,
            "subject": c.subject,
            "sent_at": c.sent_at.isoformat(),
            "status": c.status,
            "message": c.message,
            "metadata": dict(c.metadata),
        }
        for c in communications
    ]


def apply_record(row: Candidate, record: CandidateRecord) -> None:
    """Copy every mutable field of `record` onto `row`."""
    row.email = record.email
    row.phone = record.phone
    row.name = record.name
    row.score = record.score
    row.status = record.status.value
    row.screening_results = record.screening.to_dict() if record.screening else None
    row.status_history = history_to_json(record.status_history)
    row.notes = notes_to_json(record.notes)
    row.communications = communications_to_json(record.communications)

    if record.facts is not None:
        row.extracted_text = record.facts.text
        row.skills = list(record.facts.skills)
        row.experience = record.facts.experience_years
        row.education = record.facts.education


def save_record(db: Session, record: CandidateRecord) -> Candidate:
    """Upsert `record` within an existing session and commit."""
    try:
        row = db.get(Candidate, record.id) if record.id is not None else None
        if row is None:
            row = Candidate(id=record.id, job_id=record.job_id, email=record.email)
            db.add(row)
        apply_record(row, record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Could not save candidate {record.id}: {e}") from e
    return row


class SqlCandidateStore:
    """CandidateStore that opens one session per save (safe across threads)."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def save(self, candidate: CandidateRecord) -> None:
        db = self._session_factory()
        try:
            save_record(db, candidate)
        finally:
            db.close()
