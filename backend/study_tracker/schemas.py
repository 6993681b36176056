"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. The wire format is camelCase; inbound
payloads also accept the snake_case field names.
"""

from datetime import date as calendar_date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PatchModel(CamelModel):
    """Base for merge-patch payloads: unknown keys are rejected."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def changes(self) -> dict:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class TopicOut(CamelModel):
    id: str
    number: int
    subject: str
    topic: str
    completed: int
    confidence: int


class TopicUpdate(PatchModel):
    """Partial update for a topic's completion flag and confidence."""
    completed: Optional[int] = Field(default=None, ge=0, le=1)
    confidence: Optional[int] = Field(default=None, ge=0, le=100)


class SubjectSummary(CamelModel):
    subject: str
    total: int
    completed: int
    average_confidence: float


class StudySessionIn(CamelModel):
    """Payload for logging a finished study session."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    start_time: str = Field(min_length=1)
    end_time: Optional[str] = None
    duration: int = Field(default=0, ge=0)
    subject: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _real_calendar_day(cls, value: str) -> str:
        calendar_date.fromisoformat(value)
        return value


class StudySessionOut(CamelModel):
    id: str
    date: str
    start_time: str
    end_time: Optional[str] = None
    duration: int
    subject: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class ScheduleItemOut(CamelModel):
    id: str
    week: int
    date: str
    topics_to_cover: str
    study_type: str
    study_hours: str
    completed: int
    sort_order: int


class ScheduleItemUpdate(PatchModel):
    """The only mutable field of a schedule item is its completed flag."""
    completed: int = Field(ge=0, le=1)


class ScheduleWeek(CamelModel):
    week: int
    completed: int
    total: int
    items: List[ScheduleItemOut]


class ReferenceOut(CamelModel):
    id: str
    syllabus_section: str
    topic: str
    resource_type: str
    title_description: str
    url: str


class ReferenceFacets(CamelModel):
    sections: List[str]
    resource_types: List[str]


class DailyReport(CamelModel):
    date: str
    sessions: int
    total_minutes: int
    hours: int
    remaining_minutes: int
    subjects: List[str]


class TimerStatus(CamelModel):
    status: str
    is_running: bool
    elapsed_seconds: int
    display: str
    start_label: Optional[str] = None
    subject: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None


class TimerUpdate(PatchModel):
    """Session metadata that can be edited while the timer runs."""
    subject: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None
