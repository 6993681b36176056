"""SQLModel data models.

This module defines the four study collections as database tables.
Every table owns its identifier: ids are generated here on creation as
`<prefix>-<uuid4>` strings and are never supplied by clients.
"""

from typing import Optional
from uuid import uuid4
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field


def _new_id(prefix: str):
    return lambda: f"{prefix}-{uuid4()}"


class Topic(SQLModel, table=True):
    """A syllabus topic with the learner's completion flag and confidence.

    Fields:
    - `number`: ordering of the topic within its subject
    - `completed`: 0 or 1
    - `confidence`: integer percentage between 0 and 100
    """
    __tablename__ = "topics"
    __table_args__ = (
        CheckConstraint("completed IN (0, 1)", name="ck_topics_completed"),
        CheckConstraint("confidence BETWEEN 0 AND 100", name="ck_topics_confidence"),
    )

    id: str = Field(default_factory=_new_id("topic"), primary_key=True)
    number: int
    subject: str = Field(index=True)
    topic: str
    completed: int = 0
    confidence: int = 0


class StudySession(SQLModel, table=True):
    """A finished block of study time.

    `duration` is stored in whole minutes. `topic_id` points at a
    `Topic` by convention only; no foreign key is enforced.
    """
    __tablename__ = "study_sessions"
    __table_args__ = (
        CheckConstraint("duration >= 0", name="ck_study_sessions_duration"),
    )

    id: str = Field(default_factory=_new_id("session"), primary_key=True)
    date: str = Field(index=True)
    start_time: str
    end_time: Optional[str] = None
    duration: int = 0
    subject: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScheduleItem(SQLModel, table=True):
    """One row of the multi-week study schedule.

    `sort_order` preserves the order the rows were ingested in, since
    week and date alone do not sort them as intended.
    """
    __tablename__ = "schedule_items"
    __table_args__ = (
        CheckConstraint("completed IN (0, 1)", name="ck_schedule_items_completed"),
    )

    id: str = Field(default_factory=_new_id("schedule"), primary_key=True)
    week: int = Field(index=True)
    date: str
    topics_to_cover: str
    study_type: str
    study_hours: str = ""
    completed: int = 0
    sort_order: int = Field(default=0, index=True)


class Reference(SQLModel, table=True):
    """A learning resource linked to a syllabus section."""
    __tablename__ = "learning_references"

    id: str = Field(default_factory=_new_id("ref"), primary_key=True)
    syllabus_section: str = Field(index=True)
    topic: str
    resource_type: str
    title_description: str
    url: str
