"""
Skill/keyword matching between a candidate and a job.

`match()` is the flat matcher used by screening. `match_tiered()` weighs
required skills at 70 points and preferred skills at 30, and comes with
improvement suggestions for the candidate.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from .utils import round_half_up

REQUIRED_POINTS = 70
PREFERRED_POINTS = 30
MIN_SKILL_COUNT = 5


@dataclass(frozen=True)
class SkillMatch:
    matched_keywords: tuple[str, ...]
    missing_keywords: tuple[str, ...]
    skills_match_percent: int
    # Unrounded matched/required fraction, kept for the aggregate score
    ratio: float


@dataclass(frozen=True)
class SkillRequirement:
    skill: str
    matched: bool
    importance: str


@dataclass(frozen=True)
class Suggestion:
    category: str
    suggestion: str
    priority: str


@dataclass(frozen=True)
class TieredMatch:
    score: int
    skills: tuple[SkillRequirement, ...]
    suggestions: tuple[Suggestion, ...]


def normalize_skills(skills: Iterable[str]) -> list[str]:
    """Lower-cased, stripped, de-duplicated skills in their original order."""
    seen: list[str] = []
    for skill in skills:
        key = str(skill).strip().lower()
        if key and key not in seen:
            seen.append(key)
    return seen


def match(candidate_skills: Iterable[str], job_skills: Iterable[str]) -> SkillMatch:
    """Case-insensitive overlap of candidate skills against the job's skills."""
    wanted = normalize_skills(job_skills)
    have = set(normalize_skills(candidate_skills))

    matched = tuple(skill for skill in wanted if skill in have)
    missing = tuple(skill for skill in wanted if skill not in have)
    ratio = len(matched) / len(wanted) if wanted else 0.0
    percent = round_half_up(100 * ratio)
    if missing:
        # 100 is reserved for a full match
        percent = min(percent, 99)

    return SkillMatch(
        matched_keywords=matched,
        missing_keywords=missing,
        skills_match_percent=percent,
        ratio=ratio,
    )


def improvement_suggestions(
    candidate_skills: Iterable[str],
    required_skills: Iterable[str],
    preferred_skills: Iterable[str] = (),
) -> tuple[Suggestion, ...]:
    candidate_skills = list(candidate_skills)
    have = set(normalize_skills(candidate_skills))
    suggestions: list[Suggestion] = []

    missing_required = [s for s in required_skills if s.strip().lower() not in have]
    if missing_required:
        suggestions.append(Suggestion(
            category="Critical Skills Gap",
            suggestion=f"Learn these required skills: {', '.join(missing_required)}",
            priority="critical",
        ))

    missing_preferred = [s for s in preferred_skills if s.strip().lower() not in have]
    if missing_preferred:
        suggestions.append(Suggestion(
            category="Skill Enhancement",
            suggestion=f"Consider learning these preferred skills: {', '.join(missing_preferred)}",
            priority="medium",
        ))

    if len(candidate_skills) < MIN_SKILL_COUNT:
        suggestions.append(Suggestion(
            category="Skill Diversity",
            suggestion="Consider adding more skills to your resume",
            priority="medium",
        ))

    return tuple(suggestions)


def match_tiered(
    candidate_skills: Iterable[str],
    required_skills: Iterable[str],
    preferred_skills: Iterable[str] = (),
) -> TieredMatch:
    """Two-tier score: required skills earn up to 70 points, preferred up to 30."""
    candidate_skills = list(candidate_skills)
    required_skills = list(required_skills)
    preferred_skills = list(preferred_skills)

    have = set(normalize_skills(candidate_skills))
    required = normalize_skills(required_skills)
    preferred = normalize_skills(preferred_skills)

    required_points = 0.0
    if required:
        required_points = REQUIRED_POINTS * sum(s in have for s in required) / len(required)
    preferred_points = 0.0
    if preferred:
        preferred_points = PREFERRED_POINTS * sum(s in have for s in preferred) / len(preferred)

    breakdown = tuple(
        [SkillRequirement(s, s in have, "required") for s in required]
        + [SkillRequirement(s, s in have, "preferred") for s in preferred]
    )

    return TieredMatch(
        score=min(100, round_half_up(required_points + preferred_points)),
        skills=breakdown,
        suggestions=improvement_suggestions(candidate_skills, required_skills, preferred_skills),
    )
