import pytest
from fastapi.testclient import TestClient

from study_tracker import services
from study_tracker.main import app
from study_tracker.timer import MemorySnapshotStore, StudyTimer

client = TestClient(app)


@pytest.fixture
def api_timer(clock):
    """Swap the app's timer for one driven by the fake clock."""
    original = app.state.timer
    timer = StudyTimer(MemorySnapshotStore(), clock=clock)
    app.state.timer = timer
    yield timer
    app.state.timer = original


def test_timer_lifecycle_logs_a_session(api_timer, clock):
    r = client.get('/api/timer')
    assert r.status_code == 200
    assert r.json()['status'] == 'idle'
    assert r.json()['display'] == '00:00:00'

    client.patch('/api/timer', json={'subject': 'Networking', 'topicId': 'topic-abc', 'notes': 'VLSM'})
    assert client.post('/api/timer/start').json()['isRunning'] is True
    clock.advance(90)
    status = client.get('/api/timer').json()
    assert status['elapsedSeconds'] == 90
    assert status['display'] == '00:01:30'

    assert client.post('/api/timer/pause').json()['status'] == 'paused'
    clock.advance(100)
    assert client.get('/api/timer').json()['elapsedSeconds'] == 90
    client.post('/api/timer/start')
    clock.advance(30)

    r = client.post('/api/timer/stop')
    assert r.status_code == 201
    saved = r.json()
    assert saved['duration'] == 2
    assert saved['subject'] == 'Networking'
    assert saved['topicId'] == 'topic-abc'
    assert saved['notes'] == 'VLSM'
    assert client.get('/api/sessions').json()[0]['id'] == saved['id']
    assert client.get('/api/timer').json()['status'] == 'idle'


def test_stop_without_time_is_rejected(api_timer):
    r = client.post('/api/timer/stop')
    assert r.status_code == 400
    assert client.get('/api/sessions').json() == []
    assert client.get('/api/timer').json()['status'] == 'idle'


def test_reset_discards_the_running_session(api_timer, clock):
    client.post('/api/timer/start')
    clock.advance(600)
    r = client.post('/api/timer/reset')
    assert r.json()['status'] == 'idle'
    assert r.json()['elapsedSeconds'] == 0
    assert client.get('/api/sessions').json() == []


def test_pause_when_idle_is_a_noop(api_timer):
    r = client.post('/api/timer/pause')
    assert r.status_code == 200
    assert r.json()['status'] == 'idle'


def test_failed_save_keeps_the_timer(api_timer, clock, monkeypatch):
    def fail(self, record):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(services.StudySessionService, "create_from_timer", fail)
    failing_client = TestClient(app, raise_server_exceptions=False)
    client.post('/api/timer/start')
    clock.advance(120)
    r = failing_client.post('/api/timer/stop')
    assert r.status_code == 500
    assert api_timer.is_running
    assert api_timer.elapsed() == 120
