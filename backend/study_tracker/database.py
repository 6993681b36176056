"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` (a local SQLite file by default) and provides
small helpers used by the application, the scripts and the tests.
"""

from pathlib import Path

from sqlalchemy import delete
from sqlmodel import SQLModel, create_engine, Session

from .config import settings
from . import models


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.DATABASE_URL, echo=False, connect_args=_connect_args(settings.DATABASE_URL))


def create_db_and_tables():
    """Create database tables using SQLModel metadata.

    Tables are created only when missing, so calling this on every
    startup is safe.
    """
    if settings.DATABASE_URL.startswith("sqlite:///"):
        Path(settings.DATABASE_URL[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)


def clear_all_tables():
    """Delete every row from the study tables (used by tests and reseeding scripts)."""
    with Session(engine) as session:
        for table in (models.StudySession, models.ScheduleItem, models.Reference, models.Topic):
            session.exec(delete(table))
        session.commit()


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
