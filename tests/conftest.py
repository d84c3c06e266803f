from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.booking import BookingEngine, admin_policy
from app.config import Settings
from app.db import SQLStore, create_db_engine
from app.main import create_app
from app.store import JSONStore, MemoryStore

ADMIN = "admin@example.com"


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return Clock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture(params=["memory", "json", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    if request.param == "json":
        return JSONStore(tmp_path / "data")
    return SQLStore(create_db_engine(f"sqlite:///{tmp_path / 'booking.db'}"))


@pytest.fixture
def engine(store, clock):
    return BookingEngine(store, is_privileged=admin_policy(ADMIN), now=clock)


@pytest.fixture
def client(tmp_path):
    settings = Settings(
        store_backend="json",
        data_dir=str(tmp_path / "data"),
        admin_emails=ADMIN,
        static_dir=str(tmp_path / "no-web"),
    )
    return TestClient(create_app(settings))
