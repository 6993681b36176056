"""Repository classes encapsulating database operations.

Each repository is small and focused on a single collection (topics,
sessions, schedule items, references). Repositories return SQLModel
objects and perform commits/refreshes where appropriate. Lookups of an
unknown id return `None` (or `False` for deletes); deciding what that
means is left to the caller.
"""

from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import delete, func, or_
from . import models


class TopicRepository:
    """CRUD operations for `Topic` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, topic: models.Topic) -> models.Topic:
        """Persist a new topic and return the managed instance."""
        self.session.add(topic)
        self.session.commit()
        self.session.refresh(topic)
        return topic

    def get(self, topic_id: str) -> Optional[models.Topic]:
        """Get a `Topic` by primary key."""
        return self.session.get(models.Topic, topic_id)

    def list_all(self, subject: Optional[str] = None) -> List[models.Topic]:
        """Return topics ordered by subject then topic number."""
        stmt = select(models.Topic)
        if subject:
            stmt = stmt.where(models.Topic.subject == subject)
        stmt = stmt.order_by(models.Topic.subject, models.Topic.number)
        return self.session.exec(stmt).all()

    def update(self, topic_id: str, changes: dict) -> Optional[models.Topic]:
        """Apply `changes` to a topic and return it, or `None` if it does not exist."""
        topic = self.get(topic_id)
        if not topic:
            return None
        for key, value in changes.items():
            setattr(topic, key, value)
        self.session.add(topic)
        self.session.commit()
        self.session.refresh(topic)
        return topic

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(models.Topic)).one()


class StudySessionRepository:
    """Create, list and delete `StudySession` records. Sessions are never updated."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, study_session: models.StudySession) -> models.StudySession:
        self.session.add(study_session)
        self.session.commit()
        self.session.refresh(study_session)
        return study_session

    def get(self, session_id: str) -> Optional[models.StudySession]:
        return self.session.get(models.StudySession, session_id)

    def list_all(self) -> List[models.StudySession]:
        """Return all sessions, newest first."""
        stmt = select(models.StudySession).order_by(
            models.StudySession.date.desc(), models.StudySession.created_at.desc()
        )
        return self.session.exec(stmt).all()

    def list_for_date(self, day: str) -> List[models.StudySession]:
        stmt = select(models.StudySession).where(models.StudySession.date == day)
        return self.session.exec(stmt).all()

    def delete(self, session_id: str) -> bool:
        """Delete a session by id; return False if nothing was deleted."""
        study_session = self.get(session_id)
        if not study_session:
            return False
        self.session.delete(study_session)
        self.session.commit()
        return True


class ScheduleRepository:
    """Operations on `ScheduleItem` rows, always listed in ingestion order."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, item: models.ScheduleItem) -> models.ScheduleItem:
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def get(self, item_id: str) -> Optional[models.ScheduleItem]:
        return self.session.get(models.ScheduleItem, item_id)

    def list_all(self) -> List[models.ScheduleItem]:
        stmt = select(models.ScheduleItem).order_by(models.ScheduleItem.sort_order)
        return self.session.exec(stmt).all()

    def update_completed(self, item_id: str, completed: int) -> Optional[models.ScheduleItem]:
        item = self.get(item_id)
        if not item:
            return None
        item.completed = completed
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def delete_all(self) -> None:
        """Remove every schedule item (used before a reseed)."""
        self.session.exec(delete(models.ScheduleItem))
        self.session.commit()

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(models.ScheduleItem)).one()


class ReferenceRepository:
    """Read access to `Reference` rows plus creation for seeding."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, reference: models.Reference) -> models.Reference:
        self.session.add(reference)
        self.session.commit()
        self.session.refresh(reference)
        return reference

    def get(self, reference_id: str) -> Optional[models.Reference]:
        return self.session.get(models.Reference, reference_id)

    def list_all(
        self,
        search: Optional[str] = None,
        section: Optional[str] = None,
        resource_type: Optional[str] = None,
    ) -> List[models.Reference]:
        """Return references, optionally filtered.

        `search` matches topic or title/description case-insensitively;
        `section` and `resource_type` are exact matches.
        """
        stmt = select(models.Reference)
        if search:
            escaped = search.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{escaped}%"
            stmt = stmt.where(or_(
                func.lower(models.Reference.topic).like(pattern, escape="\\"),
                func.lower(models.Reference.title_description).like(pattern, escape="\\"),
            ))
        if section:
            stmt = stmt.where(models.Reference.syllabus_section == section)
        if resource_type:
            stmt = stmt.where(models.Reference.resource_type == resource_type)
        return self.session.exec(stmt.order_by(models.Reference.syllabus_section)).all()

    def distinct_sections(self) -> List[str]:
        stmt = select(models.Reference.syllabus_section).distinct().order_by(models.Reference.syllabus_section)
        return self.session.exec(stmt).all()

    def distinct_types(self) -> List[str]:
        stmt = select(models.Reference.resource_type).distinct().order_by(models.Reference.resource_type)
        return self.session.exec(stmt).all()

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(models.Reference)).one()
