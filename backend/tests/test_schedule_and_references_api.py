from fastapi.testclient import TestClient
from study_tracker.main import app

client = TestClient(app)


def test_schedule_listed_in_ingestion_order(seeded):
    items = client.get('/api/schedule').json()
    assert [i['sortOrder'] for i in items] == list(range(7))
    assert items[0]['topicsToCover'] == 'OSI and TCP/IP models'
    assert items[1]['topicsToCover'] == 'Subnetting, CIDR and VLSM'
    assert items[-1]['studyType'] == 'Timed test'
    # blank study hours column
    assert items[4]['studyHours'] == ''


def test_toggle_schedule_item(seeded):
    item = client.get('/api/schedule').json()[2]
    r = client.patch(f"/api/schedule/{item['id']}", json={'completed': 1})
    assert r.status_code == 200
    assert r.json()['completed'] == 1
    assert r.json()['sortOrder'] == item['sortOrder']
    r = client.patch(f"/api/schedule/{item['id']}", json={'completed': 0})
    assert r.json()['completed'] == 0


def test_schedule_patch_validation(seeded):
    item = client.get('/api/schedule').json()[0]
    url = f"/api/schedule/{item['id']}"
    for body in ({'completed': 3}, {'completed': 'yes'}, {}, {'completed': 1, 'week': 9}):
        assert client.patch(url, json=body).status_code == 400, body
    assert client.patch('/api/schedule/schedule-missing', json={'completed': 1}).status_code == 404


def test_schedule_grouped_by_week(seeded):
    first = client.get('/api/schedule').json()[0]
    client.patch(f"/api/schedule/{first['id']}", json={'completed': 1})
    weeks = client.get('/api/schedule/weeks').json()
    assert [w['week'] for w in weeks] == [1, 2, 3]
    assert (weeks[0]['completed'], weeks[0]['total']) == (1, 3)
    assert [i['sortOrder'] for i in weeks[0]['items']] == [0, 1, 2]
    assert (weeks[2]['completed'], weeks[2]['total']) == (0, 2)


def test_dev_reseed_schedule_resets_items(seeded):
    item = client.get('/api/schedule').json()[0]
    client.patch(f"/api/schedule/{item['id']}", json={'completed': 1})
    r = client.post('/api/dev/reseed-schedule')
    assert r.status_code == 200
    assert r.json()['created'] == 7
    items = client.get('/api/schedule').json()
    assert len(items) == 7
    assert all(i['completed'] == 0 for i in items)
    assert item['id'] not in {i['id'] for i in items}


def test_references_list_and_filters(seeded):
    all_refs = client.get('/api/references').json()
    assert len(all_refs) == 4
    assert all(r['id'].startswith('ref-') for r in all_refs)
    assert {'syllabusSection', 'resourceType', 'titleDescription', 'url'} <= set(all_refs[0])

    def titles(**params):
        return [r['titleDescription'] for r in client.get('/api/references', params=params).json()]

    assert titles(search='SUBNET') == ['Subnetting made simple, part 1']
    assert titles(search='routing tables') == ['How routing tables work']
    assert len(titles(section='Networking')) == 2
    assert titles(type='github') == ['Operating Systems: Three Easy Pieces']
    assert len(titles(section='all', type='all')) == 4
    assert titles(section='Networking', type='video', search='part') == ['Subnetting made simple, part 1']
    assert titles(search='%') == []


def test_reference_facets(seeded):
    facets = client.get('/api/references/facets').json()
    assert facets['sections'] == ['Networking', 'Operating Systems', 'Security']
    assert facets['resourceTypes'] == ['article', 'github', 'video']


def test_references_are_read_only(seeded):
    ref = client.get('/api/references').json()[0]
    assert client.post('/api/references', json=ref).status_code == 405
    assert client.delete('/api/references').status_code == 405
    assert client.patch(f"/api/references/{ref['id']}", json={'url': 'x'}).status_code in (404, 405)
