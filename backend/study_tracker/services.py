"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories,
the seed loader and the study timer. Services are intentionally thin:
they perform validation, execute domain logic and persist records via
repositories. Validation problems are raised as `ValueError`; unknown
ids are reported by returning `None` (or `False` for deletes).
"""

import logging
from collections import OrderedDict
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from sqlmodel import Session

from . import models, repositories
from .timer import FinalizedSession, StudyTimer, format_clock
from .utils import seed_loader

logger = logging.getLogger("study_tracker.api")


class TopicService:
    """Confidence/completion updates and per-subject summaries."""
    def __init__(self, session: Session):
        self.session = session
        self.topic_repo = repositories.TopicRepository(session)

    def update(self, topic_id: str, changes: Dict) -> Optional[models.Topic]:
        """Merge `changes` into a topic.

        Only `completed` (0/1) and `confidence` (0-100) may change; the
        schema enforces the ranges, this re-checks them so non-HTTP
        callers get the same guarantees.
        """
        if not changes:
            raise ValueError("no fields to update")
        unknown = set(changes) - {"completed", "confidence"}
        if unknown:
            raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
        if "completed" in changes and changes["completed"] not in (0, 1):
            raise ValueError("completed must be 0 or 1")
        if "confidence" in changes:
            conf = changes["confidence"]
            if not isinstance(conf, int) or not 0 <= conf <= 100:
                raise ValueError("confidence must be an integer between 0 and 100")
        return self.topic_repo.update(topic_id, changes)

    def summarize_by_subject(self) -> List[Dict]:
        """Return `{subject, total, completed, average_confidence}` per subject."""
        groups: "OrderedDict[str, List[models.Topic]]" = OrderedDict()
        for t in self.topic_repo.list_all():
            groups.setdefault(t.subject, []).append(t)
        out = []
        for subject, topics in groups.items():
            out.append({
                'subject': subject,
                'total': len(topics),
                'completed': sum(1 for t in topics if t.completed),
                'average_confidence': round(sum(t.confidence for t in topics) / len(topics), 1),
            })
        return out


class StudySessionService:
    """Log, delete and report on study sessions."""
    def __init__(self, session: Session):
        self.session = session
        self.session_repo = repositories.StudySessionRepository(session)

    def create(self, data: Dict) -> models.StudySession:
        """Persist a session from validated payload fields (snake_case keys)."""
        duration = data.get("duration", 0)
        if not isinstance(duration, int) or duration < 0:
            raise ValueError("duration must be a non-negative integer")
        if not data.get("start_time"):
            raise ValueError("start_time is required")
        record = models.StudySession(
            date=data["date"],
            start_time=data["start_time"],
            end_time=data.get("end_time"),
            duration=duration,
            subject=data.get("subject") or None,
            topic_id=data.get("topic_id") or None,
            notes=data.get("notes") or None,
        )
        created = self.session_repo.create(record)
        logger.info("logged study session %s (%d min)", created.id, created.duration)
        return created

    def create_from_timer(self, record: FinalizedSession) -> models.StudySession:
        return self.create({
            'date': record.date,
            'start_time': record.start_time,
            'end_time': record.end_time,
            'duration': record.duration_minutes,
            'subject': record.subject,
            'topic_id': record.topic_id,
            'notes': record.notes,
        })

    def delete(self, session_id: str) -> bool:
        return self.session_repo.delete(session_id)

    def daily_report(self, day: Optional[str] = None) -> Dict:
        """Totals for one calendar day (today by default)."""
        day = day or date.today().isoformat()
        sessions = self.session_repo.list_for_date(day)
        total_minutes = sum(s.duration for s in sessions)
        subjects = sorted({s.subject for s in sessions if s.subject})
        return {
            'date': day,
            'sessions': len(sessions),
            'total_minutes': total_minutes,
            'hours': total_minutes // 60,
            'remaining_minutes': total_minutes % 60,
            'subjects': subjects,
        }


class ScheduleService:
    """Schedule listing grouped by week and completion toggles."""
    def __init__(self, session: Session):
        self.session = session
        self.schedule_repo = repositories.ScheduleRepository(session)

    def set_completed(self, item_id: str, completed: int) -> Optional[models.ScheduleItem]:
        if completed not in (0, 1):
            raise ValueError("completed must be 0 or 1")
        return self.schedule_repo.update_completed(item_id, completed)

    def weeks(self) -> List[Dict]:
        """Group items by week, keeping sort order inside each week."""
        groups: "OrderedDict[int, List[models.ScheduleItem]]" = OrderedDict()
        for item in self.schedule_repo.list_all():
            groups.setdefault(item.week, []).append(item)
        return [
            {
                'week': week,
                'completed': sum(1 for i in items if i.completed),
                'total': len(items),
                'items': items,
            }
            for week, items in sorted(groups.items())
        ]


class ReferenceService:
    """Searchable, read-only reference list."""
    def __init__(self, session: Session):
        self.session = session
        self.reference_repo = repositories.ReferenceRepository(session)

    def search(self, search: Optional[str] = None, section: Optional[str] = None, resource_type: Optional[str] = None) -> List[models.Reference]:
        search = (search or "").strip() or None
        # "all" is what the filter dropdowns send for no filter
        section = None if section in (None, "", "all") else section
        resource_type = None if resource_type in (None, "", "all") else resource_type
        return self.reference_repo.list_all(search=search, section=section, resource_type=resource_type)

    def facets(self) -> Dict:
        return {
            'sections': self.reference_repo.distinct_sections(),
            'resource_types': self.reference_repo.distinct_types(),
        }


class SeedService:
    """Populate empty collections from the CSV files in `seed_dir`."""
    def __init__(self, session: Session, seed_dir: Path):
        self.session = session
        self.seed_dir = Path(seed_dir)
        self.topic_repo = repositories.TopicRepository(session)
        self.schedule_repo = repositories.ScheduleRepository(session)
        self.reference_repo = repositories.ReferenceRepository(session)

    def seed_all(self) -> Dict[str, int]:
        """Seed each collection that is still empty.

        Returns the number of rows created per collection; running it a
        second time creates nothing.
        """
        created = {'topics': 0, 'schedule': 0, 'references': 0}
        if self.topic_repo.count() == 0:
            created['topics'] = self._seed_topics()
        if self.schedule_repo.count() == 0:
            created['schedule'] = self._seed_schedule()
        if self.reference_repo.count() == 0:
            created['references'] = self._seed_references()
        if any(created.values()):
            logger.info("seeded data from %s: %s", self.seed_dir, created)
        else:
            logger.info("data already seeded, skipping")
        return created

    def reseed_schedule(self) -> int:
        """Clear the schedule and load it again from the CSV file."""
        text = seed_loader.read_seed_file(self.seed_dir, seed_loader.SCHEDULE_FILE)
        if text is None:
            raise FileNotFoundError(f"schedule seed file missing in {self.seed_dir}")
        self.schedule_repo.delete_all()
        return self._create_schedule(seed_loader.parse_schedule(text))

    def _seed_topics(self) -> int:
        text = seed_loader.read_seed_file(self.seed_dir, seed_loader.TOPICS_FILE)
        if text is None:
            return 0
        rows = seed_loader.parse_topics(text)
        for row in rows:
            self.topic_repo.create(models.Topic(**row))
        return len(rows)

    def _seed_schedule(self) -> int:
        text = seed_loader.read_seed_file(self.seed_dir, seed_loader.SCHEDULE_FILE)
        if text is None:
            return 0
        return self._create_schedule(seed_loader.parse_schedule(text))

    def _create_schedule(self, rows: List[Dict]) -> int:
        for row in rows:
            self.schedule_repo.create(models.ScheduleItem(**row))
        return len(rows)

    def _seed_references(self) -> int:
        text = seed_loader.read_seed_file(self.seed_dir, seed_loader.REFERENCES_FILE)
        if text is None:
            return 0
        rows = seed_loader.parse_references(text)
        for row in rows:
            self.reference_repo.create(models.Reference(**row))
        return len(rows)


class TimerService:
    """Bridge between the study timer and session storage."""
    def __init__(self, session: Session, timer: StudyTimer):
        self.session = session
        self.timer = timer
        self.sessions = StudySessionService(session)

    def status(self) -> Dict:
        state = self.timer.state
        elapsed = self.timer.elapsed()
        return {
            'status': self.timer.status,
            'is_running': self.timer.is_running,
            'elapsed_seconds': int(elapsed),
            'display': format_clock(elapsed),
            'start_label': state.start_label,
            'subject': state.subject,
            'topic_id': state.topic_id,
            'notes': state.notes,
        }

    def update_metadata(self, changes: Dict) -> Dict:
        if "subject" in changes:
            self.timer.set_subject(changes["subject"])
        if "topic_id" in changes:
            self.timer.set_topic(changes["topic_id"])
        if "notes" in changes:
            self.timer.set_notes(changes["notes"])
        return self.status()

    def stop_and_save(self) -> models.StudySession:
        """Stop the timer and store the session.

        Raises `TimerValidationError` when no time is logged. If storing
        fails the timer keeps running (or stays paused) so the stop can be
        retried.
        """
        saved: List[models.StudySession] = []
        self.timer.stop(on_finalize=lambda record: saved.append(self.sessions.create_from_timer(record)))
        return saved[0]
