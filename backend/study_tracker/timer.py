"""Study timer with pause/resume that survives restarts.

The timer keeps wall-clock timestamps, never a running tick count.
Elapsed time is recomputed from those timestamps every time it is
asked for, so a timer restored from its snapshot after the process was
stopped for an hour reports the hour as studied (or as paused, if it
was paused).

States:
- idle: no `started_at`
- running: `started_at` set, `paused_at` unset
- paused: both set

Every transition writes the full state to a `SnapshotStore`. The
derived elapsed seconds are never stored.
"""

from __future__ import annotations

import json
import logging
import math
import threading
import time
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional, Protocol

logger = logging.getLogger("study_tracker.timer")

DEFAULT_SNAPSHOT_KEY = "study-timer-state"

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"


class TimerValidationError(ValueError):
    """Raised when a timer operation is rejected, e.g. stopping with no time logged."""


class SnapshotStore(Protocol):
    def load(self) -> Optional[dict]: ...

    def save(self, snapshot: dict) -> None: ...

    def clear(self) -> None: ...


class MemorySnapshotStore:
    """Keeps the snapshot in memory; used by tests and short-lived timers."""

    def __init__(self, snapshot: Optional[dict] = None):
        self._snapshot = dict(snapshot) if snapshot else None

    def load(self) -> Optional[dict]:
        return dict(self._snapshot) if self._snapshot is not None else None

    def save(self, snapshot: dict) -> None:
        self._snapshot = dict(snapshot)

    def clear(self) -> None:
        self._snapshot = None


class JsonFileSnapshotStore:
    """Durable key-value slot backed by a JSON file.

    The file holds one object; the timer snapshot lives under `key`.
    Other keys in the file are preserved on write.
    """

    def __init__(self, path: Path | str, key: str = DEFAULT_SNAPSHOT_KEY):
        self.path = Path(path)
        self.key = key
        self._lock = threading.Lock()

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"snapshot file {self.path} does not contain a JSON object")
        return data

    def _write_all(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=True, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def _read_for_write(self) -> Optional[dict]:
        """Like `_read_all`, but returns None for a file that cannot be parsed."""
        try:
            return self._read_all()
        except ValueError as exc:
            logger.warning("overwriting unreadable snapshot file %s: %s", self.path, exc)
            return None

    def load(self) -> Optional[dict]:
        with self._lock:
            return self._read_all().get(self.key)

    def save(self, snapshot: dict) -> None:
        with self._lock:
            data = self._read_for_write() or {}
            data[self.key] = snapshot
            self._write_all(data)

    def clear(self) -> None:
        with self._lock:
            data = self._read_for_write()
            if data is None:
                self._write_all({})
            elif self.key in data:
                data.pop(self.key)
                self._write_all(data)


@dataclass
class TimerState:
    started_at: Optional[float] = None
    paused_accumulated: float = 0.0
    paused_at: Optional[float] = None
    subject: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None
    start_label: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TimerState":
        """Rebuild a state from a snapshot, rejecting malformed values."""
        started_at = _optional_float(data.get("started_at"), "started_at")
        paused_at = _optional_float(data.get("paused_at"), "paused_at")
        accumulated = _optional_float(data.get("paused_accumulated"), "paused_accumulated") or 0.0
        if started_at is None and paused_at is not None:
            raise ValueError("paused_at set without started_at")
        return cls(
            started_at=started_at,
            paused_accumulated=accumulated,
            paused_at=paused_at,
            subject=data.get("subject"),
            topic_id=data.get("topic_id"),
            notes=data.get("notes"),
            start_label=data.get("start_label"),
        )


def _optional_float(value, name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number")
    return float(value)


@dataclass(frozen=True)
class FinalizedSession:
    """A stopped timer, ready to be stored as a study session."""
    date: str
    start_time: str
    end_time: str
    duration_minutes: int
    subject: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None

    def to_payload(self) -> dict:
        """Session-creation payload in the API's wire format."""
        return {
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration_minutes,
            "subject": self.subject or None,
            "topicId": self.topic_id or None,
            "notes": self.notes or None,
        }


def clock_label(ts: float) -> str:
    """Human clock label (HH:MM, local time) for an epoch timestamp."""
    return datetime.fromtimestamp(ts).strftime("%H:%M")


def format_clock(seconds: float) -> str:
    """Format elapsed seconds as HH:MM:SS."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class StudyTimer:
    """Start/pause/resume/stop timer over wall-clock timestamps.

    `clock` returns epoch seconds and defaults to `time.time`. The state
    is restored from `store` on construction. Transitions are serialized
    by a lock, so one timer can be shared by concurrent request handlers.
    """

    def __init__(self, store: Optional[SnapshotStore] = None, clock: Callable[[], float] = time.time):
        self._store = store if store is not None else MemorySnapshotStore()
        self._clock = clock
        self._lock = threading.RLock()
        self._state = self._restore()

    def _restore(self) -> TimerState:
        try:
            snapshot = self._store.load()
        except Exception:
            logger.exception("failed to load timer snapshot; starting idle")
            return TimerState()
        if not snapshot:
            return TimerState()
        try:
            state = TimerState.from_dict(snapshot)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("discarding unreadable timer snapshot: %s", exc)
            return TimerState()
        logger.info("restored timer snapshot (status=%s)", _status_of(state))
        return state

    def _persist(self) -> None:
        try:
            self._store.save(self._state.to_dict())
        except Exception:
            logger.exception("failed to save timer snapshot")

    def _clear_snapshot(self) -> None:
        try:
            self._store.clear()
        except Exception:
            logger.exception("failed to clear timer snapshot")

    @property
    def state(self) -> TimerState:
        """A copy of the current state."""
        return TimerState(**self._state.to_dict())

    @property
    def status(self) -> str:
        return _status_of(self._state)

    @property
    def is_running(self) -> bool:
        return self._state.started_at is not None and self._state.paused_at is None

    def elapsed(self) -> float:
        """Seconds of running time, excluding every paused interval."""
        s = self._state
        if s.started_at is None:
            return 0.0
        now = self._clock()
        total = now - s.started_at
        current_pause = now - s.paused_at if s.paused_at is not None else 0.0
        return max(0.0, total - s.paused_accumulated - current_pause)

    def start(self) -> None:
        """Start an idle timer or resume a paused one. No-op while running."""
        with self._lock:
            s = self._state
            now = self._clock()
            if s.started_at is None:
                s.started_at = now
                s.paused_accumulated = 0.0
                s.paused_at = None
                s.start_label = clock_label(now)
            elif s.paused_at is not None:
                # a backward clock jump must not shrink the accumulated pause
                s.paused_accumulated += max(0.0, now - s.paused_at)
                s.paused_at = None
            else:
                return
            self._persist()

    def pause(self) -> None:
        with self._lock:
            if not self.is_running:
                return
            self._state.paused_at = self._clock()
            self._persist()

    def stop(self, on_finalize: Optional[Callable[[FinalizedSession], object]] = None) -> FinalizedSession:
        """Finish the session and reset to idle.

        Raises `TimerValidationError` (leaving the state untouched) when
        no time has been logged. When `on_finalize` is given it receives
        the record before the reset; if it raises, the timer keeps its
        state so the stop can be retried. The lock is held across the
        guard, `on_finalize` and the reset, so concurrent stops finalize
        a session at most once.
        """
        with self._lock:
            elapsed = self.elapsed()
            if elapsed <= 0:
                raise TimerValidationError("no time logged; start the timer before stopping")
            now = self._clock()
            s = self._state
            record = FinalizedSession(
                date=datetime.fromtimestamp(now).strftime("%Y-%m-%d"),
                start_time=s.start_label or clock_label(s.started_at),
                end_time=clock_label(now),
                duration_minutes=math.floor(elapsed / 60),
                subject=s.subject,
                topic_id=s.topic_id,
                notes=s.notes,
            )
            if on_finalize is not None:
                on_finalize(record)
            self.reset()
            return record

    def reset(self) -> None:
        with self._lock:
            self._state = TimerState()
            self._clear_snapshot()

    def set_subject(self, subject: Optional[str]) -> None:
        with self._lock:
            self._state.subject = subject or None
            self._persist()

    def set_topic(self, topic_id: Optional[str]) -> None:
        with self._lock:
            self._state.topic_id = topic_id or None
            self._persist()

    def set_notes(self, notes: Optional[str]) -> None:
        with self._lock:
            self._state.notes = notes or None
            self._persist()


def _status_of(state: TimerState) -> str:
    if state.started_at is None:
        return IDLE
    if state.paused_at is not None:
        return PAUSED
    return RUNNING


def iter_display(
    timer: StudyTimer,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[str]:
    """Yield the formatted elapsed time every `interval` seconds while running.

    The cadence only drives presentation; each value is computed from
    the timer's timestamps at the moment it is yielded.
    """
    while timer.is_running:
        yield format_clock(timer.elapsed())
        sleep(interval)
