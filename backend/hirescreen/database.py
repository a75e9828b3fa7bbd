"""
Database engine, session factory, table creation and the FastAPI session
dependency.
"""

from collections.abc import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from .config import DATABASE_URL

# SQLite connections are shared with the bulk-screening worker threads.
_connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    _connect_args = {"check_same_thread": False, "timeout": 30}

engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
Base = declarative_base()


def init_db() -> None:
    """Create any missing tables."""
    from . import models  # noqa: F401  (registers the tables on Base)

    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; always closed afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
