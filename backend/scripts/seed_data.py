"""CLI script to seed the database from the CSV files in SEED_DIR.
Usage: python scripts/seed_data.py [--seed-dir DIR] [--reseed-schedule]
"""
import sys
import argparse
import pathlib
from typing import Optional
# Ensure `backend/` is on sys.path so `study_tracker` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from study_tracker.config import settings
from study_tracker.database import engine, create_db_and_tables
from study_tracker import services


def main(seed_dir: Optional[pathlib.Path] = None, reseed_schedule: bool = False) -> int:
    """Seed empty collections (or reload the schedule) and print a summary."""
    seed_dir = seed_dir or settings.SEED_DIR
    if not seed_dir.exists():
        print(f'Seed folder not found at {seed_dir}')
        return 1
    create_db_and_tables()
    with Session(engine) as session:
        svc = services.SeedService(session, seed_dir)
        if reseed_schedule:
            try:
                count = svc.reseed_schedule()
            except FileNotFoundError as e:
                print(f'Error: {e}')
                return 1
            print(f'Reseeded schedule: {count} items')
            return 0
        created = svc.seed_all()
    for name, count in created.items():
        print(f'{name}: created {count}')
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--seed-dir', type=pathlib.Path, help='Folder holding topics.csv, schedule.csv and references.csv')
    parser.add_argument('--reseed-schedule', action='store_true', help='Clear the schedule and load it again')
    args = parser.parse_args()
    sys.exit(main(seed_dir=args.seed_dir, reseed_schedule=args.reseed_schedule))
