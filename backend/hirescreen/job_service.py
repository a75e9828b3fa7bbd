"""
Service layer between the HTTP routes and the screening core.

Loads jobs and candidates, runs extraction / scoring / lifecycle
transitions on plain records, and writes the results back.
"""

import logging
from functools import lru_cache
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from .exceptions import CandidateNotFoundError, JobNotFoundError, ValidationError
from .lifecycle import BulkScreenReport, LifecycleController, ScreeningOutcome, pipeline_stats
from .llm_service import annotate
from .matching import TieredMatch, match_tiered
from .models import Candidate, JobPosting
from .repository import (
    SqlCandidateStore, candidate_to_record, facts_from_row, history_to_json,
    job_to_spec, save_record,
)
from .resume_parser import EMAIL_PATTERN, default_vocabulary, parse_document
from .schemas import CandidateRecord, CandidateStatus, StatusChange
from .scoring import RankedCandidate, ScoringPolicy, rank_candidates
from .utils import timing_decorator

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_controller() -> LifecycleController:
    """Process-wide controller built from configuration."""
    return LifecycleController.from_settings(annotator=annotate)


# ── Lookups ─────────────────────────────────────────────────────────────────

def get_job(db: Session, job_id: int) -> JobPosting:
    job = db.get(JobPosting, job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return job


def get_candidate(db: Session, candidate_id: int) -> Candidate:
    row = db.get(Candidate, candidate_id)
    if row is None:
        raise CandidateNotFoundError(candidate_id)
    return row


# ── Jobs ────────────────────────────────────────────────────────────────────

def canonical_skills(skills: Iterable[str]) -> list[str]:
    """Vocabulary spelling of each skill (unknown ones kept as typed), no repeats."""
    vocabulary = default_vocabulary()
    result: list[str] = []
    for skill in skills:
        skill = str(skill).strip()
        name = vocabulary.canonical(skill) or skill
        if name and name not in result:
            result.append(name)
    return result


def create_job(
    db: Session,
    title: str,
    description: str = "",
    requirements: Iterable[str] = (),
    skills: Iterable[str] = (),
    preferred_skills: Iterable[str] = (),
    experience_min: int = 0,
    experience_max: int = 10,
    location: str = "",
) -> JobPosting:
    if not title or not title.strip():
        raise ValidationError("Job title cannot be empty")
    if experience_min > experience_max:
        # Accepted as-is; both experience evaluators cope with an inverted band.
        logger.warning("Job %r has min experience %d above max %d", title, experience_min, experience_max)

    job = JobPosting(
        title=title.strip(),
        description=description,
        requirements=list(requirements),
        skills=canonical_skills(skills),
        preferred_skills=canonical_skills(preferred_skills),
        experience_min=experience_min,
        experience_max=experience_max,
        location=location,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Created job %d (%s)", job.id, job.title)
    return job


# ── Intake ──────────────────────────────────────────────────────────────────

@timing_decorator
def ingest_resume(
    db: Session,
    job_id: int,
    data: bytes,
    mime_type: str,
    filename: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    name: Optional[str] = None,
) -> Candidate:
    """
    Create a candidate from an uploaded resume.

    Manually supplied contact details win over extracted ones. The upload is
    rejected only when no email is available from either source.
    """
    job = get_job(db, job_id)
    if email and not EMAIL_PATTERN.fullmatch(email.strip()):
        raise ValidationError(f"Invalid email address: {email!r}")

    facts = parse_document(data, mime_type)
    applicant_email = (email or facts.email or "").strip().lower()
    if not applicant_email:
        raise ValidationError("An applicant email is required and none was found in the resume")

    initial = StatusChange(CandidateStatus.NEW, get_controller().clock(), reason="Resume received")
    row = Candidate(
        job_id=job.id,
        email=applicant_email,
        phone=(phone or facts.phone or None),
        name=name,
        resume_filename=filename,
        mime_type=mime_type,
        data_source="auto" if facts.text else "manual",
        extracted_text=facts.text,
        skills=list(facts.skills),
        experience=facts.experience_years,
        education=facts.education,
        status=CandidateStatus.NEW.value,
        status_history=history_to_json([initial]),
        notes=[],
        communications=[],
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    if not facts.text:
        logger.warning("No text extracted for candidate %d (%s); using manual fields", row.id, filename)
    logger.info("Candidate %d added to job %d with %d skills", row.id, job.id, len(facts.skills))
    return row


# ── Screening ───────────────────────────────────────────────────────────────

def screen_candidate(
    db: Session,
    candidate_id: int,
    controller: Optional[LifecycleController] = None,
) -> CandidateRecord:
    controller = controller or get_controller()
    row = get_candidate(db, candidate_id)
    spec = job_to_spec(get_job(db, row.job_id))

    updated = controller.screen(candidate_to_record(row), spec)
    save_record(db, updated)
    logger.info("Candidate %d screened: %d", candidate_id, updated.score)
    return updated


@timing_decorator
def screen_job(
    db: Session,
    job_id: int,
    controller: Optional[LifecycleController] = None,
) -> BulkScreenReport:
    """Screen every "new" candidate of a job; failures are reported per candidate."""
    controller = controller or get_controller()
    spec = job_to_spec(get_job(db, job_id))
    rows = (
        db.query(Candidate)
        .filter(Candidate.job_id == job_id, Candidate.status == CandidateStatus.NEW.value)
        .order_by(Candidate.id)
        .all()
    )

    records: list[CandidateRecord] = []
    unreadable: list[ScreeningOutcome] = []
    for row in rows:
        try:
            records.append(candidate_to_record(row))
        except Exception as e:
            logger.error("Candidate %d record is unreadable: %s", row.id, e)
            unreadable.append(ScreeningOutcome(row.id, False, error=f"Unreadable record: {e}"))
    db.rollback()  # release the read before workers write

    report = controller.bulk_screen(records, spec, SqlCandidateStore())
    if unreadable:
        report = BulkScreenReport(report.job_id, report.outcomes + tuple(unreadable))

    if report.failed == 0:
        logger.info("Job %d screening completed: %d candidates", job_id, report.attempted)
    elif report.succeeded > 0:
        logger.info("Job %d screening completed with %d ok / %d failed", job_id, report.succeeded, report.failed)
    else:
        logger.error("Job %d screening failed for all %d candidates", job_id, report.failed)
    return report


def rank_job(
    db: Session,
    job_id: int,
    policy: Optional[ScoringPolicy] = None,
) -> list[tuple[Candidate, RankedCandidate]]:
    """Order a job's candidates with the ranking policy (nothing is saved)."""
    spec = job_to_spec(get_job(db, job_id))
    rows = {row.id: row for row in db.query(Candidate).filter(Candidate.job_id == job_id)}

    scorable = []
    for row in rows.values():
        facts = facts_from_row(row)
        if facts is not None:
            scorable.append((row.id, facts))

    return [(rows[ranked.key], ranked) for ranked in rank_candidates(scorable, spec, policy)]


def skill_gap(db: Session, candidate_id: int) -> TieredMatch:
    row = get_candidate(db, candidate_id)
    spec = job_to_spec(get_job(db, row.job_id))
    facts = facts_from_row(row)
    return match_tiered(facts.skills if facts else (), spec.skills, spec.preferred_skills)


# ── Manual lifecycle actions ────────────────────────────────────────────────

def update_status(
    db: Session,
    candidate_id: int,
    status: str,
    reason: Optional[str] = None,
    changed_by: Optional[str] = None,
    feedback: Optional[str] = None,
    controller: Optional[LifecycleController] = None,
) -> CandidateRecord:
    new_status = CandidateStatus.parse(status)
    controller = controller or get_controller()
    row = get_candidate(db, candidate_id)
    job = get_job(db, row.job_id)

    updated = controller.change_status(
        candidate_to_record(row), new_status,
        reason=reason, changed_by=changed_by, feedback=feedback, job_title=job.title,
    )
    save_record(db, updated)
    return updated


def add_note(
    db: Session,
    candidate_id: int,
    content: str,
    author: Optional[str] = None,
    controller: Optional[LifecycleController] = None,
) -> CandidateRecord:
    controller = controller or get_controller()
    row = get_candidate(db, candidate_id)
    updated = controller.add_note(candidate_to_record(row), content, author)
    save_record(db, updated)
    return updated


def job_pipeline_stats(db: Session, job_id: int) -> dict:
    get_job(db, job_id)
    rows = db.query(Candidate).filter(Candidate.job_id == job_id).all()
    return pipeline_stats(candidate_to_record(row) for row in rows)
