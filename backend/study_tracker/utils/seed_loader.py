"""CSV parsing for the one-time seed data.

The seed files are flat CSV exports with a header line. Parsers return
lists of dictionaries whose keys match the model field names; rows that
do not carry the required fields are skipped and logged so a single
malformed line never aborts a seed run.
"""

import csv
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger("study_tracker.seed")

TOPICS_FILE = "topics.csv"
SCHEDULE_FILE = "schedule.csv"
REFERENCES_FILE = "references.csv"


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line on commas outside double quotes and trim each field."""
    rows = list(csv.reader([line], skipinitialspace=True))
    if not rows:
        return []
    return [field.strip() for field in rows[0]]


def _data_lines(text: str) -> List[str]:
    """Return non-empty lines after the header."""
    lines = text.splitlines()[1:]
    return [ln for ln in lines if ln.strip()]


def _coerce_int(val) -> Optional[int]:
    try:
        return int(str(val).strip())
    except (TypeError, ValueError):
        return None


def parse_topics(text: str) -> List[Dict]:
    """Parse `number,subject,topic` rows into topic dicts."""
    out = []
    for lineno, line in enumerate(_data_lines(text), start=2):
        parts = parse_csv_line(line)
        if len(parts) < 3 or not all(parts[:3]):
            logger.warning("topics: skipping incomplete row %d: %r", lineno, line)
            continue
        number = _coerce_int(parts[0])
        if number is None:
            logger.warning("topics: skipping row %d with non-numeric number %r", lineno, parts[0])
            continue
        out.append({
            'number': number,
            'subject': parts[1],
            'topic': parts[2],
            'completed': 0,
            'confidence': 0,
        })
    return out


def parse_schedule(text: str) -> List[Dict]:
    """Parse `week,date,topics,type[,hours]` rows.

    `sort_order` numbers the accepted rows from 0 in file order.
    """
    out = []
    sort_order = 0
    for lineno, line in enumerate(_data_lines(text), start=2):
        parts = parse_csv_line(line)
        if len(parts) < 4 or not all(parts[:4]):
            logger.warning("schedule: skipping incomplete row %d: %r", lineno, line)
            continue
        week = _coerce_int(parts[0])
        if week is None or week < 1:
            logger.warning("schedule: skipping row %d with invalid week %r", lineno, parts[0])
            continue
        out.append({
            'week': week,
            'date': parts[1],
            'topics_to_cover': parts[2],
            'study_type': parts[3],
            'study_hours': parts[4] if len(parts) > 4 else '',
            'completed': 0,
            'sort_order': sort_order,
        })
        sort_order += 1
    return out


def parse_references(text: str) -> List[Dict]:
    """Parse `section,topic,type,title,url` rows."""
    out = []
    for lineno, line in enumerate(_data_lines(text), start=2):
        parts = parse_csv_line(line)
        if len(parts) < 5 or not all(parts[:5]):
            logger.warning("references: skipping incomplete row %d: %r", lineno, line)
            continue
        out.append({
            'syllabus_section': parts[0],
            'topic': parts[1],
            'resource_type': parts[2],
            'title_description': parts[3],
            'url': parts[4],
        })
    return out


def read_seed_file(seed_dir: Path, name: str) -> Optional[str]:
    """Return the text of `seed_dir/name`, or None if the file is absent."""
    path = Path(seed_dir) / name
    if not path.is_file():
        logger.warning("seed file not found: %s", path)
        return None
    return path.read_text(encoding="utf-8-sig")
