"""
Centralized configuration: every setting comes from an environment variable
with a default that works for local development.

Nothing here is mutated at runtime. Collaborators that need a group of
settings (e.g. the notification sender identity) receive them as explicit
values built from these constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _csv(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# ── Database ────────────────────────────────────────────────────────────────
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./hirescreen.db")

# ── CORS ────────────────────────────────────────────────────────────────────
CORS_ORIGINS: list[str] = _csv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

# ── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ── Uploads ─────────────────────────────────────────────────────────────────
MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ALLOWED_MIME_TYPES: set[str] = {PDF_MIME_TYPE, DOCX_MIME_TYPE}

# ── Extraction ──────────────────────────────────────────────────────────────
PARSE_TIMEOUT_SECONDS: float = float(os.getenv("PARSE_TIMEOUT_SECONDS", "20"))
MAX_DETECTED_SKILLS: int = int(os.getenv("MAX_DETECTED_SKILLS", "10"))
EXPERIENCE_CEILING_YEARS: int = int(os.getenv("EXPERIENCE_CEILING_YEARS", "50"))
# Optional JSON file (list of terms, or alias → canonical object)
SKILL_VOCABULARY_PATH: str = os.getenv("SKILL_VOCABULARY_PATH", "")

# ── Screening ───────────────────────────────────────────────────────────────
# "primary" (skills/experience 60/40) or "ranking" (four-term blend)
SCORING_POLICY: str = os.getenv("SCORING_POLICY", "primary")
# Statuses screening may move to "screened". "*" means any status.
AUTO_ADVANCE_STATUSES: list[str] = _csv("AUTO_ADVANCE_STATUSES", "new")
BULK_SCREEN_WORKERS: int = int(os.getenv("BULK_SCREEN_WORKERS", "5"))

# ── Notifications ───────────────────────────────────────────────────────────
NOTIFICATIONS_ENABLED: bool = _flag("NOTIFICATIONS_ENABLED", "true")
NOTIFY_FROM_EMAIL: str = os.getenv("NOTIFY_FROM_EMAIL", "noreply@hirescreen.local")
NOTIFY_FROM_NAME: str = os.getenv("NOTIFY_FROM_NAME", "Resume Screening")

# ── Ollama / LLM screening notes ────────────────────────────────────────────
SCREENING_NOTES_USE_LLM: bool = _flag("SCREENING_NOTES_USE_LLM")
OLLAMA_HOST: str = os.getenv("OLLAMA_HOST", "https://ollama.com")
OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "gpt-oss:120b")
OLLAMA_API_KEY: str = os.getenv("OLLAMA_API_KEY", "")
MAX_RESUME_CHARS: int = int(os.getenv("MAX_RESUME_CHARS", "3000"))
