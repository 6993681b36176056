from pathlib import Path

import pytest

from study_tracker import repositories, services
from study_tracker.utils.seed_loader import (
    parse_csv_line, parse_references, parse_schedule, parse_topics,
)


def test_parse_csv_line_handles_quotes_and_whitespace():
    assert parse_csv_line('1,"Subnetting, CIDR",x') == ['1', 'Subnetting, CIDR', 'x']
    assert parse_csv_line(' 2 , Networking ,  Routing ') == ['2', 'Networking', 'Routing']
    assert parse_csv_line('a,,c') == ['a', '', 'c']


def test_parse_topics_skips_incomplete_rows():
    text = "Number,Subject,Topic\n1,Networking,OSI\nx,Networking,Bad number\n,Networking,No number\n3,Networking\n\n4,Security,Hashing\n"
    rows = parse_topics(text)
    assert [(r['number'], r['topic']) for r in rows] == [(1, 'OSI'), (4, 'Hashing')]
    assert all(r['completed'] == 0 and r['confidence'] == 0 for r in rows)


def test_parse_schedule_numbers_accepted_rows_in_order():
    text = (
        "Week,Date,Topics,Type,Hours\n"
        "1,Mon,Intro,Reading,2\n"
        "1,Tue,,Reading,2\n"
        "0,Wed,Zero week,Reading,1\n"
        "2,Thu,Routing,Video\n"
        "2,Fri,Review,Flashcards,1.5\n"
    )
    rows = parse_schedule(text)
    assert [(r['topics_to_cover'], r['sort_order']) for r in rows] == [('Intro', 0), ('Routing', 1), ('Review', 2)]
    assert rows[1]['study_hours'] == ''
    assert rows[2]['study_hours'] == '1.5'


def test_parse_references_requires_all_fields():
    text = "a,b,c,d,e\nSec,Topic,video,Title,https://x\nSec,Topic,video,Title,\n"
    rows = parse_references(text)
    assert rows == [{
        'syllabus_section': 'Sec', 'topic': 'Topic', 'resource_type': 'video',
        'title_description': 'Title', 'url': 'https://x',
    }]


def test_seed_all_is_idempotent(db_session, seeded):
    assert seeded == {'topics': 7, 'schedule': 7, 'references': 4}
    seed_dir = Path(__file__).resolve().parents[1] / "data" / "seed"
    again = services.SeedService(db_session, seed_dir).seed_all()
    assert again == {'topics': 0, 'schedule': 0, 'references': 0}
    assert repositories.TopicRepository(db_session).count() == 7


def test_missing_file_skips_only_that_collection(db_session, tmp_path: Path):
    (tmp_path / 'topics.csv').write_text("n,s,t\n1,Maths,Algebra\n", encoding='utf-8')
    (tmp_path / 'schedule.csv').write_text("w,d,t,y,h\n1,Mon,Algebra,Reading,1\n", encoding='utf-8')
    created = services.SeedService(db_session, tmp_path).seed_all()
    assert created == {'topics': 1, 'schedule': 1, 'references': 0}


def test_reseed_schedule_replaces_items(db_session, tmp_path: Path):
    schedule = tmp_path / 'schedule.csv'
    schedule.write_text("w,d,t,y,h\n1,Mon,A,Reading,1\n1,Tue,B,Reading,1\n", encoding='utf-8')
    svc = services.SeedService(db_session, tmp_path)
    svc.seed_all()
    schedule.write_text("w,d,t,y,h\n1,Mon,C,Reading,1\n", encoding='utf-8')
    assert svc.reseed_schedule() == 1
    items = repositories.ScheduleRepository(db_session).list_all()
    assert [(i.topics_to_cover, i.sort_order) for i in items] == [('C', 0)]


def test_reseed_schedule_without_file_fails(db_session, tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        services.SeedService(db_session, tmp_path).reseed_schedule()
