"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the study tracker backend.
Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses.

Endpoints implemented:
- GET /api/topics, GET /api/topics/summary, GET|PATCH /api/topics/{id}
- GET|POST /api/sessions, DELETE /api/sessions/{id}
- GET /api/dashboard/daily
- GET /api/schedule, GET /api/schedule/weeks, PATCH /api/schedule/{id}
- GET /api/references, GET /api/references/facets
- GET|PATCH /api/timer, POST /api/timer/{start,pause,stop,reset}
- POST /api/dev/reseed-schedule (ENV=dev only)
- GET /health
"""

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlmodel import Session
from typing import List, Optional
from datetime import date
import json
import logging
import time
import uuid
from .database import engine, create_db_and_tables, get_session
from . import services, repositories, schemas
from .timer import JsonFileSnapshotStore, StudyTimer, TimerValidationError
from .config import settings

app = FastAPI(title="Study Tracker API")
logger = logging.getLogger("study_tracker.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS lets a locally served frontend talk to the API in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _seed_on_startup() -> None:
    if not settings.SEED_ON_STARTUP:
        return
    if not settings.SEED_DIR.exists():
        logger.info("seed directory %s not found; skipping seeding", settings.SEED_DIR)
        return
    with Session(engine) as session:
        services.SeedService(session, settings.SEED_DIR).seed_all()


_seed_on_startup()

# Single user, single timer: the server owns one timer persisted to disk.
app.state.timer = StudyTimer(JsonFileSnapshotStore(settings.TIMER_STATE_PATH))


def get_timer(request: Request) -> StudyTimer:
    """FastAPI dependency returning the application's study timer."""
    return request.app.state.timer


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed payloads as 400 rather than FastAPI's default 422."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# ── Topics ────────────────────────────────────────────────────────────────

@app.get('/api/topics', response_model=List[schemas.TopicOut])
def list_topics(subject: Optional[str] = None, db: Session = Depends(get_session)):
    """List topics ordered by subject and topic number."""
    return repositories.TopicRepository(db).list_all(subject=subject)


@app.get('/api/topics/summary', response_model=List[schemas.SubjectSummary])
def topic_summary(db: Session = Depends(get_session)):
    """Per-subject completion counts and average confidence."""
    return services.TopicService(db).summarize_by_subject()


@app.get('/api/topics/{topic_id}', response_model=schemas.TopicOut)
def get_topic(topic_id: str, db: Session = Depends(get_session)):
    topic = repositories.TopicRepository(db).get(topic_id)
    if not topic:
        raise HTTPException(status_code=404, detail='topic not found')
    return topic


@app.patch('/api/topics/{topic_id}', response_model=schemas.TopicOut)
def update_topic(topic_id: str, payload: schemas.TopicUpdate, db: Session = Depends(get_session)):
    """Merge-patch a topic's `completed` flag and/or `confidence`."""
    changes = payload.changes()
    if any(v is None for v in changes.values()):
        raise HTTPException(status_code=400, detail='fields may not be null')
    try:
        topic = services.TopicService(db).update(topic_id, changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not topic:
        raise HTTPException(status_code=404, detail='topic not found')
    return topic


# ── Sessions ──────────────────────────────────────────────────────────────

@app.get('/api/sessions', response_model=List[schemas.StudySessionOut])
def list_sessions(db: Session = Depends(get_session)):
    """List logged study sessions, newest first."""
    return repositories.StudySessionRepository(db).list_all()


@app.post('/api/sessions', response_model=schemas.StudySessionOut, status_code=201)
def create_session(payload: schemas.StudySessionIn, db: Session = Depends(get_session)):
    """Log a finished study session."""
    try:
        return services.StudySessionService(db).create(payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete('/api/sessions/{session_id}')
def delete_session(session_id: str, db: Session = Depends(get_session)):
    if not services.StudySessionService(db).delete(session_id):
        raise HTTPException(status_code=404, detail='session not found')
    return {'message': 'session deleted'}


@app.get('/api/dashboard/daily', response_model=schemas.DailyReport)
def daily_report(day: Optional[str] = None, db: Session = Depends(get_session)):
    """Study totals for `day` (YYYY-MM-DD, default today)."""
    if day is not None:
        try:
            date.fromisoformat(day)
        except ValueError:
            raise HTTPException(status_code=400, detail='day must be YYYY-MM-DD')
    return services.StudySessionService(db).daily_report(day)


# ── Schedule ──────────────────────────────────────────────────────────────

@app.get('/api/schedule', response_model=List[schemas.ScheduleItemOut])
def list_schedule(db: Session = Depends(get_session)):
    """List schedule items in their original ingestion order."""
    return repositories.ScheduleRepository(db).list_all()


@app.get('/api/schedule/weeks', response_model=List[schemas.ScheduleWeek])
def schedule_weeks(db: Session = Depends(get_session)):
    weeks = services.ScheduleService(db).weeks()
    return [
        schemas.ScheduleWeek(
            week=w['week'],
            completed=w['completed'],
            total=w['total'],
            items=[schemas.ScheduleItemOut.model_validate(i) for i in w['items']],
        )
        for w in weeks
    ]


@app.patch('/api/schedule/{item_id}', response_model=schemas.ScheduleItemOut)
def update_schedule_item(item_id: str, payload: schemas.ScheduleItemUpdate, db: Session = Depends(get_session)):
    try:
        item = services.ScheduleService(db).set_completed(item_id, payload.completed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not item:
        raise HTTPException(status_code=404, detail='schedule item not found')
    return item


# ── References ────────────────────────────────────────────────────────────

@app.get('/api/references', response_model=List[schemas.ReferenceOut])
def list_references(
    search: Optional[str] = None,
    section: Optional[str] = None,
    type: Optional[str] = None,
    db: Session = Depends(get_session),
):
    """List references, filtered by free-text `search`, `section` and resource `type`."""
    return services.ReferenceService(db).search(search=search, section=section, resource_type=type)


@app.get('/api/references/facets', response_model=schemas.ReferenceFacets)
def reference_facets(db: Session = Depends(get_session)):
    return services.ReferenceService(db).facets()


# ── Timer ─────────────────────────────────────────────────────────────────

@app.get('/api/timer', response_model=schemas.TimerStatus)
def timer_status(timer: StudyTimer = Depends(get_timer), db: Session = Depends(get_session)):
    return services.TimerService(db, timer).status()


@app.patch('/api/timer', response_model=schemas.TimerStatus)
def update_timer(payload: schemas.TimerUpdate, timer: StudyTimer = Depends(get_timer), db: Session = Depends(get_session)):
    """Set the subject, topic or notes of the session being timed."""
    return services.TimerService(db, timer).update_metadata(payload.changes())


@app.post('/api/timer/start', response_model=schemas.TimerStatus)
def start_timer(timer: StudyTimer = Depends(get_timer), db: Session = Depends(get_session)):
    """Start the timer, or resume it when paused."""
    timer.start()
    return services.TimerService(db, timer).status()


@app.post('/api/timer/pause', response_model=schemas.TimerStatus)
def pause_timer(timer: StudyTimer = Depends(get_timer), db: Session = Depends(get_session)):
    timer.pause()
    return services.TimerService(db, timer).status()


@app.post('/api/timer/reset', response_model=schemas.TimerStatus)
def reset_timer(timer: StudyTimer = Depends(get_timer), db: Session = Depends(get_session)):
    timer.reset()
    return services.TimerService(db, timer).status()


@app.post('/api/timer/stop', response_model=schemas.StudySessionOut, status_code=201)
def stop_timer(timer: StudyTimer = Depends(get_timer), db: Session = Depends(get_session)):
    """Stop the timer and log the session; 400 if no time was logged."""
    try:
        return services.TimerService(db, timer).stop_and_save()
    except TimerValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ── Misc ──────────────────────────────────────────────────────────────────

@app.post('/api/dev/reseed-schedule')
def reseed_schedule(db: Session = Depends(get_session)):
    """Development only: clear the schedule and reload it from the seed CSV."""
    if not settings.is_dev:
        raise HTTPException(status_code=404, detail='not found')
    try:
        count = services.SeedService(db, settings.SEED_DIR).reseed_schedule()
    except FileNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {'message': 'schedule reseeded', 'created': count}


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
