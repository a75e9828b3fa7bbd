"""
Plain value types passed between the extractor, the scorers and the
lifecycle controller. None of them know about the database.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .exceptions import InvalidStatusError


class CandidateStatus(str, Enum):
    NEW = "new"
    SCREENED = "screened"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    INTERVIEW = "interview"
    OFFER = "offer"
    HIRED = "hired"

    @classmethod
    def parse(cls, value: Any) -> "CandidateStatus":
        """Return the status named by `value`, or raise InvalidStatusError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidStatusError(value) from None


@dataclass(frozen=True)
class ExperienceBand:
    min_years: int = 0
    max_years: int = 10


@dataclass(frozen=True)
class JobSpec:
    """Read-only view of a job posting as the scorers see it."""

    title: str
    description: str = ""
    requirements: tuple[str, ...] = ()
    skills: tuple[str, ...] = ()
    preferred_skills: tuple[str, ...] = ()
    experience: ExperienceBand = ExperienceBand()
    location: str = ""
    id: Optional[int] = None


@dataclass(frozen=True)
class CandidateFacts:
    """Structured signals pulled out of one resume document."""

    text: str = ""
    email: str = ""
    phone: str = ""
    skills: tuple[str, ...] = ()
    experience_years: int = 0
    education: str = ""

    @classmethod
    def empty(cls) -> "CandidateFacts":
        return cls()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["skills"] = list(self.skills)
        return data


@dataclass(frozen=True)
class ScreeningResult:
    skills_match: int = 0
    experience_match: int = 0
    overall_score: int = 0
    matched_keywords: tuple[str, ...] = ()
    missing_keywords: tuple[str, ...] = ()
    found_experience: int = 0
    # Only the ranking policy fills these two
    education_match: Optional[int] = None
    keyword_match: Optional[int] = None
    policy: str = "primary"
    screening_notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["matched_keywords"] = list(self.matched_keywords)
        data["missing_keywords"] = list(self.missing_keywords)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScreeningResult":
        return cls(
            skills_match=int(data.get("skills_match", 0)),
            experience_match=int(data.get("experience_match", 0)),
            overall_score=int(data.get("overall_score", 0)),
            matched_keywords=tuple(data.get("matched_keywords") or ()),
            missing_keywords=tuple(data.get("missing_keywords") or ()),
            found_experience=int(data.get("found_experience", 0)),
            education_match=data.get("education_match"),
            keyword_match=data.get("keyword_match"),
            policy=data.get("policy", "primary"),
            screening_notes=data.get("screening_notes", ""),
        )


@dataclass(frozen=True)
class StatusChange:
    status: CandidateStatus
    changed_at: datetime
    reason: Optional[str] = None
    changed_by: Optional[str] = None


@dataclass(frozen=True)
class Note:
    content: str
    created_at: datetime
    created_by: Optional[str] = None


@dataclass(frozen=True)
class Communication:
    type: str
    subject: str
    sent_at: datetime
    status: str = "sent"
    message: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CandidateRecord:
    """An applicant attached to one job, as the lifecycle controller sees it.

    `facts` is None only when the stored extraction snapshot is unreadable.
    The three logs are append-only tuples; transitions build new records.
    """

    id: Optional[int]
    job_id: int
    email: str
    phone: Optional[str] = None
    name: Optional[str] = None
    facts: Optional[CandidateFacts] = CandidateFacts()
    screening: Optional[ScreeningResult] = None
    score: int = 0
    status: CandidateStatus = CandidateStatus.NEW
    status_history: tuple[StatusChange, ...] = ()
    notes: tuple[Note, ...] = ()
    communications: tuple[Communication, ...] = ()
