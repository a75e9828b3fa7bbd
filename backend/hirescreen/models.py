"""
SQLAlchemy ORM models for job postings and candidates.

List-shaped data (skills, requirements, screening results and the three
candidate logs) is stored in JSON columns; `repository.py` converts rows
to and from the plain records the screening core works with.
"""

from datetime import datetime, timezone
from sqlalchemy import (
    JSON, Column, DateTime, ForeignKey, Integer, String, Text,
)
from sqlalchemy.orm import relationship
from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobPosting(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    requirements = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    preferred_skills = Column(JSON, default=list)
    experience_min = Column(Integer, default=0)
    experience_max = Column(Integer, default=10)
    location = Column(String, default="")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    candidates = relationship("Candidate", back_populates="job", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<JobPosting(id={self.id}, title={self.title}, "
            f"experience={self.experience_min}-{self.experience_max})>"
        )


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    name = Column(String, nullable=True)

    resume_filename = Column(String, nullable=True)
    mime_type = Column(String, nullable=True)
    data_source = Column(String, default="auto")

    # Extraction snapshot
    extracted_text = Column(Text, default="")
    skills = Column(JSON, default=list)
    experience = Column(Integer, default=0)
    education = Column(String, default="")

    score = Column(Integer, default=0)
    status = Column(String, default="new", index=True)
    screening_results = Column(JSON, nullable=True)
    status_history = Column(JSON, default=list)
    notes = Column(JSON, default=list)
    communications = Column(JSON, default=list)

    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    job = relationship("JobPosting", back_populates="candidates")

    def __repr__(self) -> str:
        return (
            f"<Candidate(id={self.id}, email={self.email}, "
            f"score={self.score}, status={self.status})>"
        )
