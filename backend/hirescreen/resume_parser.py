"""
Resume text extraction and fact detection.

`parse_document()` is the entry point: bytes + MIME type in, CandidateFacts
out. It never raises. Text extraction runs on its own daemon thread with a
timeout, and each sub-extraction (email, phone, skills, experience,
education) is wrapped so that one failing heuristic only zeroes its own
field.
"""

import io
import logging
import os
import queue
import re
import threading
from functools import lru_cache, wraps
from typing import Any, Callable, Optional

import pdfplumber
from docx import Document

from .config import (
    DOCX_MIME_TYPE, EXPERIENCE_CEILING_YEARS, MAX_DETECTED_SKILLS,
    PARSE_TIMEOUT_SECONDS, PDF_MIME_TYPE, SKILL_VOCABULARY_PATH,
)
from .exceptions import ExtractionError
from .schemas import CandidateFacts
from .utils import timing_decorator
from .vocabulary import SkillVocabulary, load_vocabulary

logger = logging.getLogger(__name__)


# ── Patterns ────────────────────────────────────────────────────────────────

EMAIL_PATTERN = re.compile(r"[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}")

# Most to least specific; the first acceptable hit of the earliest pattern wins.
PHONE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\+\d[\d \t\-()]{5,18}\d"),                 # +1 (555) 123-4567
    re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"),      # (555) 123-4567
    re.compile(r"(?:\+91[\-\s]?)?\d{5}[\-\s]?\d{5}"),        # 98765 43210
    re.compile(r"\d{7,15}"),
)
PHONE_DIGITS = (7, 15)

EXPERIENCE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"(\d+)\s*(?:years?|yrs?)(?:\s+of)?\s*(?:experience|exp)", re.IGNORECASE),
    re.compile(r"experience\s*:\s*(\d+)\s*(?:years?|yrs?)", re.IGNORECASE),
    re.compile(r"(\d+)\s*-\s*(\d+)\s*(?:years?|yrs?)", re.IGNORECASE),
)
YEARS_MENTION = re.compile(r"(\d+)\s*(?:years?|yrs?)", re.IGNORECASE)

# Long degree words match as whole words (optionally plural/possessive);
# two-letter abbreviations only in upper case, so "me"/"be" in prose don't count.
_DEGREE_WORDS = (
    "bachelor", "master", "phd", "ph.d", "doctorate", "mba", "btech", "b.tech",
    "mtech", "m.tech", "bsc", "b.sc", "msc", "m.sc", "associate", "diploma",
    "certificate",
)
DEGREE_PATTERN = re.compile(
    r"(?<![a-z])(?:" + "|".join(re.escape(w) for w in _DEGREE_WORDS) + r")s?(?![a-z])",
    re.IGNORECASE,
)
DEGREE_ABBREVIATION = re.compile(r"\b(?:B\.?E|M\.?E|B\.?A|M\.?A)\b")
EDUCATION_LINE_CHARS = 100


# ── Fault isolation ─────────────────────────────────────────────────────────

def _fail_soft(default: Any) -> Callable:
    """Make a sub-extraction return `default` instead of raising."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.warning("%s failed, using %r", func.__name__, default, exc_info=True)
                return default

        return wrapper

    return decorator


@lru_cache(maxsize=1)
def default_vocabulary() -> SkillVocabulary:
    return load_vocabulary(SKILL_VOCABULARY_PATH)


# ── Sub-extractions ─────────────────────────────────────────────────────────

@_fail_soft("")
def extract_email(text: str) -> str:
    """First email-looking token, or ''."""
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else ""


@_fail_soft("")
def extract_phone(text: str) -> str:
    low, high = PHONE_DIGITS
    for pattern in PHONE_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(0).strip()
            if low <= len(re.sub(r"\D", "", candidate)) <= high:
                return candidate
    return ""


@_fail_soft(())
def extract_skills(
    text: str,
    vocabulary: Optional[SkillVocabulary] = None,
    limit: int = MAX_DETECTED_SKILLS,
) -> tuple[str, ...]:
    vocabulary = vocabulary or default_vocabulary()
    return vocabulary.detect(text, limit=limit)


@_fail_soft(0)
def extract_experience(text: str, ceiling: int = EXPERIENCE_CEILING_YEARS) -> int:
    """
    Years of experience claimed in the text.

    Explicit phrasings are tried in order and the first plausible number
    wins. Otherwise the largest plausible "N years" mention is used.
    Numbers above `ceiling` are treated as noise.
    """
    for pattern in EXPERIENCE_PATTERNS:
        for match in pattern.finditer(text):
            years = int(match.group(1))
            if 0 < years <= ceiling:
                return years

    mentions = [int(m.group(1)) for m in YEARS_MENTION.finditer(text)]
    plausible = [years for years in mentions if years <= ceiling]
    return max(plausible, default=0)


@_fail_soft("")
def extract_education(text: str) -> str:
    for line in text.split("\n"):
        if DEGREE_PATTERN.search(line) or DEGREE_ABBREVIATION.search(line):
            return line.strip()[:EDUCATION_LINE_CHARS]
    return ""


# ── Document → text ─────────────────────────────────────────────────────────

def guess_mime_type(filename: str) -> Optional[str]:
    ext = os.path.splitext(filename or "")[1].lower()
    return {".pdf": PDF_MIME_TYPE, ".docx": DOCX_MIME_TYPE}.get(ext)


def extract_text(data: bytes, mime_type: str = PDF_MIME_TYPE) -> str:
    """Plain text of a PDF or DOCX document held in memory."""
    if mime_type == PDF_MIME_TYPE:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            return "\n".join(page.extract_text() or "" for page in pdf.pages)

    if mime_type == DOCX_MIME_TYPE:
        doc = Document(io.BytesIO(data))
        return "\n".join(p.text for p in doc.paragraphs)

    raise ExtractionError(f"Unsupported resume format: {mime_type}")


def _extract_text_with_timeout(data: bytes, mime_type: str, timeout: Optional[float]) -> str:
    """
    Run extract_text() on a fresh daemon thread and wait at most `timeout`.

    A document that hangs the parser keeps only its own thread busy; later
    documents always start on a new one. Raises queue.Empty on timeout.
    """
    results: queue.Queue = queue.Queue(maxsize=1)

    def _worker() -> None:
        try:
            results.put((True, extract_text(data, mime_type)))
        except Exception as e:
            results.put((False, e))

    threading.Thread(target=_worker, name="resume-parse", daemon=True).start()
    ok, value = results.get(timeout=timeout)
    if not ok:
        raise value
    return value


# ── Public API ──────────────────────────────────────────────────────────────

def extract_facts(text: str, vocabulary: Optional[SkillVocabulary] = None) -> CandidateFacts:
    """Run every sub-extraction over already-extracted resume text."""
    if not isinstance(text, str) or not text.strip():
        return CandidateFacts.empty()

    return CandidateFacts(
        text=text,
        email=extract_email(text),
        phone=extract_phone(text),
        skills=extract_skills(text, vocabulary),
        experience_years=extract_experience(text),
        education=extract_education(text),
    )


@timing_decorator
def parse_document(
    data: bytes,
    mime_type: str = PDF_MIME_TYPE,
    vocabulary: Optional[SkillVocabulary] = None,
    timeout: Optional[float] = PARSE_TIMEOUT_SECONDS,
) -> CandidateFacts:
    """
    Turn an uploaded resume into CandidateFacts.

    Unreadable, unsupported or slow documents yield zero-valued facts so the
    caller can fall back to manually entered applicant details.
    """
    if not data:
        logger.warning("Empty resume document")
        return CandidateFacts.empty()

    try:
        text = _extract_text_with_timeout(data, mime_type, timeout)
    except queue.Empty:
        logger.warning("Resume extraction timed out after %ss (%s)", timeout, mime_type)
        return CandidateFacts.empty()
    except Exception as e:
        logger.warning("Resume extraction failed (%s): %s", mime_type, e)
        logger.debug("Extraction failure detail", exc_info=True)
        return CandidateFacts.empty()

    return extract_facts(text, vocabulary)
