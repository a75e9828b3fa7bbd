"""
Score aggregation.

A ScoringPolicy turns CandidateFacts + JobSpec into a ScreeningResult.
Two policies exist side by side:

- PrimaryScoringPolicy: round(skills * 0.6 + experience * 0.4). This is what
  screening uses and what moves a candidate to "screened".
- RankingScoringPolicy: skills 0.4, experience 0.3, education 0.2,
  free-text keywords 0.1. Used to order a job's candidates.

`screen()` wraps either one so that bad data yields a zero result whose
missing keywords still list what the job asks for.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Hashable, Iterable, Optional, Protocol

from .experience import evaluate, evaluate_band_fit
from .matching import match, normalize_skills
from .schemas import CandidateFacts, JobSpec, ScreeningResult
from .utils import round_half_up

logger = logging.getLogger(__name__)

STOP_WORDS: set[str] = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
    "has", "had", "that", "this", "it", "we", "you", "they", "will", "can",
    "should", "must", "not", "from", "as", "do", "does", "did", "so", "if",
    "our", "your", "their", "who", "what", "which", "all", "any", "into",
    "about", "more", "than", "also", "such", "its", "may", "per",
}
KEYWORD_LIMIT = 50
EDUCATION_KEYWORDS = ("bachelor", "master", "phd", "degree", "diploma")
EDUCATION_KEYWORD_CREDIT = 0.2

_TOKEN = re.compile(r"[a-z0-9][a-z0-9+#.]*")


class ScoringPolicy(Protocol):
    name: str

    def score(self, facts: CandidateFacts, job: JobSpec) -> ScreeningResult:
        ...


def aggregate(skills_match: float, experience_match: float) -> int:
    """Overall screening score from skills and experience percentages."""
    return round_half_up(
        skills_match * PrimaryScoringPolicy.SKILLS_WEIGHT
        + experience_match * PrimaryScoringPolicy.EXPERIENCE_WEIGHT
    )


def extract_keywords(text: str, limit: int = KEYWORD_LIMIT) -> list[str]:
    """First `limit` distinct meaningful tokens of `text`."""
    keywords: list[str] = []
    for token in _TOKEN.findall((text or "").lower()):
        token = token.rstrip(".")
        if len(token) <= 2 or token in STOP_WORDS or any(c.isdigit() for c in token):
            continue
        if token not in keywords:
            keywords.append(token)
            if len(keywords) >= limit:
                break
    return keywords


def _candidate_skills(facts: CandidateFacts, job_skills: Iterable[str], search_text: bool) -> list[str]:
    skills = list(facts.skills)
    if search_text and facts.text:
        text = facts.text.lower()
        skills.extend(s for s in normalize_skills(job_skills) if s in text)
    return skills


class PrimaryScoringPolicy:
    """
    Skills 60 / experience 40.

    With `search_text` on, a job skill also counts as matched when it appears
    anywhere in the resume text, since the extractor only reports a capped
    set of vocabulary terms.
    """

    name = "primary"
    SKILLS_WEIGHT = 0.6
    EXPERIENCE_WEIGHT = 0.4

    def __init__(self, search_text: bool = True):
        self.search_text = search_text

    def score(self, facts: CandidateFacts, job: JobSpec) -> ScreeningResult:
        skills = match(_candidate_skills(facts, job.skills, self.search_text), job.skills)
        experience_match = evaluate(facts.experience_years, job.experience)

        return ScreeningResult(
            skills_match=skills.skills_match_percent,
            experience_match=experience_match,
            overall_score=aggregate(100 * skills.ratio, experience_match),
            matched_keywords=skills.matched_keywords,
            missing_keywords=skills.missing_keywords,
            found_experience=facts.experience_years,
            policy=self.name,
        )


class RankingScoringPolicy:
    """Four-term blend used to order candidates for one job."""

    name = "ranking"
    WEIGHTS = {"skills": 0.4, "experience": 0.3, "education": 0.2, "keywords": 0.1}

    def education_score(self, education: str, requirements: Iterable[str]) -> float:
        requirement_text = " ".join(requirements).lower()
        education = (education or "").lower()
        hits = sum(1 for kw in EDUCATION_KEYWORDS if kw in requirement_text and kw in education)
        return min(1.0, hits * EDUCATION_KEYWORD_CREDIT)

    def keyword_score(self, resume_text: str, job: JobSpec) -> float:
        job_text = " ".join([job.title, job.description, *job.requirements])
        job_keywords = extract_keywords(job_text)
        if not job_keywords:
            return 0.0
        resume_keywords = set(extract_keywords(resume_text))
        return sum(1 for kw in job_keywords if kw in resume_keywords) / len(job_keywords)

    def score(self, facts: CandidateFacts, job: JobSpec) -> ScreeningResult:
        skills = match(facts.skills, job.skills)
        parts = {
            "skills": skills.ratio,
            "experience": evaluate_band_fit(facts.experience_years, job.experience),
            "education": self.education_score(facts.education, job.requirements),
            "keywords": self.keyword_score(facts.text, job),
        }
        overall = sum(parts[key] * weight for key, weight in self.WEIGHTS.items())

        return ScreeningResult(
            skills_match=skills.skills_match_percent,
            experience_match=round_half_up(100 * parts["experience"]),
            overall_score=round_half_up(100 * overall),
            matched_keywords=skills.matched_keywords,
            missing_keywords=skills.missing_keywords,
            found_experience=facts.experience_years,
            education_match=round_half_up(100 * parts["education"]),
            keyword_match=round_half_up(100 * parts["keywords"]),
            policy=self.name,
        )


POLICIES: dict[str, type] = {
    PrimaryScoringPolicy.name: PrimaryScoringPolicy,
    RankingScoringPolicy.name: RankingScoringPolicy,
}


def get_policy(name: str) -> ScoringPolicy:
    try:
        return POLICIES[name.strip().lower()]()
    except KeyError:
        raise ValueError(f"Unknown scoring policy {name!r}; choose from {sorted(POLICIES)}") from None


def _job_skills_or_empty(job: Any) -> tuple[str, ...]:
    try:
        return tuple(str(s) for s in job.skills)
    except Exception:
        return ()


def failed_result(job: Any, policy_name: str = PrimaryScoringPolicy.name) -> ScreeningResult:
    """Zero-valued result that still reports everything the job asks for."""
    return ScreeningResult(missing_keywords=_job_skills_or_empty(job), policy=policy_name)


def screen(
    facts: CandidateFacts,
    job: JobSpec,
    policy: Optional[ScoringPolicy] = None,
) -> ScreeningResult:
    """Score `facts` against `job`, degrading to a zero result on bad data."""
    policy = policy or PrimaryScoringPolicy()
    try:
        return policy.score(facts, job)
    except Exception as e:
        logger.warning(
            "Scoring failed for job %s (%s policy): %s",
            getattr(job, "id", None), policy.name, e,
        )
        logger.debug("Scoring failure detail", exc_info=True)
        return failed_result(job, policy.name)


@dataclass(frozen=True)
class RankedCandidate:
    key: Hashable
    result: ScreeningResult

    @property
    def overall_score(self) -> int:
        return self.result.overall_score


def rank_candidates(
    candidates: Iterable[tuple[Hashable, CandidateFacts]],
    job: JobSpec,
    policy: Optional[ScoringPolicy] = None,
) -> list[RankedCandidate]:
    """Score each (key, facts) pair and order them best first."""
    policy = policy or RankingScoringPolicy()
    ranked = [RankedCandidate(key, screen(facts, job, policy)) for key, facts in candidates]
    ranked.sort(key=lambda r: r.overall_score, reverse=True)
    return ranked
