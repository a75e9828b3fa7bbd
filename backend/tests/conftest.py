"""
Pytest configuration for the hirescreen tests.

The database URL must point at a throwaway SQLite file before any
hirescreen module is imported, because the engine is built at import time.
"""
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone

_TMP_DIR = tempfile.mkdtemp(prefix="hirescreen-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SCREENING_NOTES_USE_LLM"] = "false"

import pytest  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

from hirescreen.database import Base, SessionLocal, engine, init_db  # noqa: E402
from hirescreen.notifications import NotificationConfig  # noqa: E402
from hirescreen.schemas import (  # noqa: E402
    CandidateFacts, CandidateRecord, ExperienceBand, JobSpec,
)


@pytest.fixture
def db():
    """Fresh tables and a session for each test."""
    init_db()
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def job_spec():
    return JobSpec(
        id=1,
        title="Frontend Engineer",
        description="Build web interfaces with modern tooling",
        requirements=("Bachelor degree in Computer Science", "3+ years with React"),
        skills=("JavaScript", "React"),
        preferred_skills=("TypeScript", "Docker"),
        experience=ExperienceBand(3, 8),
        location="Remote",
    )


@pytest.fixture
def make_candidate():
    def _make(candidate_id=1, skills=("javascript", "python"), years=2, **overrides):
        fields = {
            "id": candidate_id,
            "job_id": 1,
            "email": f"candidate{candidate_id}@example.com",
            "facts": CandidateFacts(skills=tuple(skills), experience_years=years),
        }
        fields.update(overrides)
        return CandidateRecord(**fields)

    return _make


@pytest.fixture
def fixed_clock():
    """Clock that advances one second per call."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = iter(range(10_000))
    lock = threading.Lock()

    def _now():
        with lock:
            return start + timedelta(seconds=next(ticks))

    return _now


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def notification_config():
    return NotificationConfig(from_email="talent@example.com", from_name="Talent Team")
