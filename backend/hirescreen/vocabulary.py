"""
Skill vocabulary used by the resume extractor.

The vocabulary is an ordered alias → canonical mapping so deployments can
add terms (or spellings of existing ones) from a JSON file without touching
code. Order matters: detection reports skills in vocabulary order and the
extractor keeps only the first few.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_SKILLS: tuple[str, ...] = (
    "JavaScript", "React", "Node.js", "Python", "Java", "HTML", "CSS",
    "MongoDB", "SQL", "Git", "AWS", "Docker", "TypeScript", "Angular",
    "Vue.js", "PHP", "C++", "C#", "Ruby", "Swift", "Kotlin", "Go",
    "Machine Learning", "AI", "Data Science", "DevOps", "Agile",
    "Project Management", "Leadership", "Communication", "Teamwork",
)


class SkillVocabulary:
    def __init__(self, terms: Union[Mapping[str, str], Iterable[str]]):
        self._terms: dict[str, str] = {}
        if isinstance(terms, Mapping):
            items = terms.items()
        else:
            items = ((term, term) for term in terms)
        for alias, canonical in items:
            alias = str(alias).strip()
            canonical = str(canonical).strip()
            if alias and canonical:
                self._terms.setdefault(alias.lower(), canonical)

    @classmethod
    def default(cls) -> "SkillVocabulary":
        return cls(DEFAULT_SKILLS)

    @classmethod
    def from_file(cls, path: str) -> "SkillVocabulary":
        """Load a JSON list of terms or an object mapping alias → canonical."""
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, (list, dict)):
            raise ValueError(f"{path}: expected a JSON list or object")
        vocabulary = cls(data)
        logger.info("Loaded %d skill terms from %s", len(vocabulary), path)
        return vocabulary

    def extended(self, terms: Union[Mapping[str, str], Iterable[str]]) -> "SkillVocabulary":
        """Return a new vocabulary with `terms` appended after the current ones."""
        merged = dict(self._terms)
        for alias, canonical in SkillVocabulary(terms)._terms.items():
            merged.setdefault(alias, canonical)
        return SkillVocabulary(merged)

    def canonical(self, term: str) -> Optional[str]:
        return self._terms.get(term.strip().lower())

    def detect(self, text: str, limit: Optional[int] = None) -> tuple[str, ...]:
        """Case-insensitive containment scan of `text`, in vocabulary order."""
        lower = text.lower()
        found: list[str] = []
        for alias, canonical in self._terms.items():
            if limit is not None and len(found) >= limit:
                break
            if alias in lower and canonical not in found:
                found.append(canonical)
        return tuple(found)

    def __len__(self) -> int:
        return len(self._terms)


def load_vocabulary(path: str = "") -> SkillVocabulary:
    """Vocabulary from `path` if given, else the built-in terms."""
    if not path:
        return SkillVocabulary.default()
    return SkillVocabulary.from_file(path)
