"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DATABASE_URL: str
    SEED_DIR: Path
    SEED_ON_STARTUP: bool
    TIMER_STATE_PATH: Path
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str
    API_BASE_URL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'study.db'}")
        self.SEED_DIR = Path(os.getenv("SEED_DIR", str(BASE / "data" / "seed"))).expanduser()
        self.SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "true").lower() == "true"
        self.TIMER_STATE_PATH = Path(os.getenv("TIMER_STATE_PATH", str(BASE / "data" / "timer_state.json"))).expanduser()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.API_BASE_URL = os.getenv("STUDY_TRACKER_API", "http://127.0.0.1:8000")
        self._validate()

    def _validate(self):
        if self.ENV not in ("dev", "test", "prod"):
            raise RuntimeError(f"ENV must be one of dev, test, prod (got {self.ENV!r})")
        if not self.DATABASE_URL.strip():
            raise RuntimeError("DATABASE_URL must not be empty")
        if self.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise RuntimeError(f"LOG_LEVEL is not a valid logging level: {self.LOG_LEVEL}")

    @property
    def is_dev(self) -> bool:
        return self.ENV == "dev"


settings = Settings()
