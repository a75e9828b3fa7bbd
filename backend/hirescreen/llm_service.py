"""
Screening notes: a short recruiter-facing summary attached to each
ScreeningResult.

Notes are written from the score breakdown by default. When
SCREENING_NOTES_USE_LLM is set the Ollama model writes them instead, and
any model failure falls back to the breakdown-based text.
"""

import logging
from dataclasses import replace

from ollama import Client

from . import config
from .schemas import CandidateFacts, JobSpec, ScreeningResult

logger = logging.getLogger(__name__)

# ── Ollama client ───────────────────────────────────────────────────────────
_headers = {"Authorization": f"Bearer {config.OLLAMA_API_KEY}"} if config.OLLAMA_API_KEY else {}
client = Client(host=config.OLLAMA_HOST, headers=_headers)

MAX_NOTES_CHARS = 600


def breakdown_notes(result: ScreeningResult, job: JobSpec) -> str:
    """Deterministic notes built from the numbers alone."""
    total = len(result.matched_keywords) + len(result.missing_keywords)
    parts = [
        f"Matched {len(result.matched_keywords)} of {total} required skills "
        f"({result.skills_match}%).",
        f"{result.found_experience} years of experience found; "
        f"experience match {result.experience_match}%.",
    ]
    if result.missing_keywords:
        parts.append(f"Missing: {', '.join(result.missing_keywords)}.")
    parts.append(f"Overall score {result.overall_score} for {job.title or 'this role'}.")
    return " ".join(parts)


def _prompt(result: ScreeningResult, facts: CandidateFacts, job: JobSpec) -> str:
    resume = facts.text[: config.MAX_RESUME_CHARS]
    return (
        "Write two or three sentences for a recruiter summarising how this "
        "resume fits the job. Do not invent a score; use the one given.\n\n"
        f"JOB: {job.title}\n"
        f"REQUIRED SKILLS: {', '.join(job.skills)}\n"
        f"MATCHED: {', '.join(result.matched_keywords) or 'none'}\n"
        f"MISSING: {', '.join(result.missing_keywords) or 'none'}\n"
        f"YEARS FOUND: {result.found_experience}\n"
        f"OVERALL SCORE: {result.overall_score}\n\n"
        f"RESUME:\n{resume}"
    )


def screening_notes(result: ScreeningResult, facts: CandidateFacts, job: JobSpec) -> str:
    if not config.SCREENING_NOTES_USE_LLM or not facts.text.strip():
        return breakdown_notes(result, job)

    try:
        response = client.chat(
            model=config.OLLAMA_MODEL,
            messages=[{"role": "user", "content": _prompt(result, facts, job)}],
        )
        notes = (response["message"]["content"] or "").strip()
        if not notes:
            raise ValueError("Empty response from model")
        return notes[:MAX_NOTES_CHARS]
    except Exception as e:
        logger.error("LLM screening notes failed, using breakdown: %s", e)
        logger.debug("LLM failure detail", exc_info=True)
        return breakdown_notes(result, job)


def annotate(result: ScreeningResult, facts: CandidateFacts, job: JobSpec) -> ScreeningResult:
    """Annotator hook for LifecycleController."""
    return replace(result, screening_notes=screening_notes(result, facts, job))
