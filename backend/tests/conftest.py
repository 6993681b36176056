import os
import tempfile
from pathlib import Path

import pytest

# Point the app at throwaway storage before `study_tracker` reads its settings.
_TMP = Path(tempfile.mkdtemp(prefix="study_tracker_tests_"))
SEED_DIR = Path(__file__).resolve().parents[1] / "data" / "seed"
os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["SEED_DIR"] = str(SEED_DIR)
os.environ["TIMER_STATE_PATH"] = str(_TMP / "timer_state.json")

from sqlmodel import Session  # noqa: E402

from study_tracker.database import clear_all_tables, create_db_and_tables, engine  # noqa: E402
from study_tracker import services  # noqa: E402


class FakeClock:
    """Manually advanced wall clock (epoch seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test empty tables."""
    create_db_and_tables()
    clear_all_tables()
    yield


@pytest.fixture
def db_session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def seeded(db_session):
    """Load the sample CSVs shipped in data/seed."""
    return services.SeedService(db_session, SEED_DIR).seed_all()


@pytest.fixture
def clock():
    return FakeClock()
