import httpx
import pytest
from fastapi.testclient import TestClient

from study_tracker.client import StudyTrackerClient
from study_tracker.main import app
from study_tracker.timer import FinalizedSession
from study_tracker.utils.optimistic import OptimisticCache


@pytest.fixture
def api():
    return StudyTrackerClient(http=TestClient(app))


def test_optimistic_update_is_confirmed(api, seeded):
    cache = api.topics_cache()
    topic = cache.items()[0]
    confirmed = cache.mutate(topic['id'], {'confidence': 60}, api.update_topic)
    assert confirmed['confidence'] == 60
    assert cache.get(topic['id']) == confirmed
    assert api.get_topic(topic['id'])['confidence'] == 60


def test_rejected_update_rolls_back(api, seeded):
    cache = api.topics_cache()
    topic = cache.items()[0]
    with pytest.raises(httpx.HTTPStatusError) as exc:
        cache.mutate(topic['id'], {'confidence': 500}, api.update_topic)
    assert exc.value.response.status_code == 400
    assert cache.get(topic['id']) == topic
    assert api.get_topic(topic['id'])['confidence'] == topic['confidence']


def test_tentative_value_is_visible_until_failure():
    records = [{'id': 'a', 'completed': 0}, {'id': 'b', 'completed': 0}]
    cache = OptimisticCache(lambda: records)
    seen = {}

    def commit(item_id, **patch):
        seen['during'] = cache.get(item_id)
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        cache.mutate('a', {'completed': 1}, commit)
    assert seen['during'] == {'id': 'a', 'completed': 1}
    assert cache.items() == records


def test_unknown_item_is_not_committed():
    cache = OptimisticCache(lambda: [{'id': 'a', 'completed': 0}])
    calls = []

    def commit(item_id, **patch):
        calls.append(item_id)
        return {'id': item_id, **patch}

    with pytest.raises(KeyError):
        cache.mutate('missing', {'completed': 1}, commit)
    assert calls == []
    assert cache.items() == [{'id': 'a', 'completed': 0}]


def test_schedule_toggle_through_cache(api, seeded):
    cache = api.schedule_cache()
    item = cache.items()[0]
    cache.mutate(item['id'], {'completed': 1}, api.update_schedule_item)
    assert api.list_schedule()[0]['completed'] == 1


def test_save_finished_session_and_report(api):
    record = FinalizedSession(
        date='2025-11-03', start_time='18:00', end_time='19:30',
        duration_minutes=90, subject='Security', notes='RSA',
    )
    saved = api.save_finished_session(record)
    assert saved['duration'] == 90
    assert saved['endTime'] == '19:30'
    assert [s['id'] for s in api.list_sessions()] == [saved['id']]
    report = api.daily_report('2025-11-03')
    assert (report['hours'], report['remainingMinutes']) == (1, 30)
    api.delete_session(saved['id'])
    assert api.list_sessions() == []


def test_reference_search(api, seeded):
    found = api.list_references(search='cryptography', resource_type='article')
    assert [r['syllabusSection'] for r in found] == ['Security']
