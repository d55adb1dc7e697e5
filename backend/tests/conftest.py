from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker

from perkwatch.database import Base, get_db
from perkwatch.dependencies import get_current_time
from perkwatch.errors import SchedulingError
from perkwatch.main import app

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

# Sunday 15 March 2026, noon UTC
FIXED_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeDelivery:
    """In-memory notification collaborator with injectable failures."""

    def __init__(self, scheduled=(), fail_schedule=(), fail_cancel=(), fail_list=False, crash_on=()):
        self.scheduled = {key: None for key in scheduled}
        self.fail_schedule = set(fail_schedule)
        self.fail_cancel = set(fail_cancel)
        self.fail_list = fail_list
        self.crash_on = set(crash_on)
        self.calls = []

    async def schedule(self, dedupe_key, fire_at, payload):
        self.calls.append(("schedule", dedupe_key))
        if dedupe_key in self.crash_on:
            raise RuntimeError("delivery backend crashed")
        if dedupe_key in self.fail_schedule:
            raise SchedulingError("rejected by delivery backend")
        self.scheduled[dedupe_key] = (fire_at, payload)
        return f"delivery-{len(self.calls)}"

    async def cancel(self, dedupe_key):
        self.calls.append(("cancel", dedupe_key))
        if dedupe_key in self.fail_cancel:
            raise SchedulingError("cancel rejected")
        self.scheduled.pop(dedupe_key, None)

    async def list_scheduled(self):
        if self.fail_list:
            raise SchedulingError("delivery backend offline")
        return list(self.scheduled)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    frozen = FrozenClock(FIXED_NOW)
    app.dependency_overrides[get_current_time] = frozen
    yield frozen
    app.dependency_overrides.pop(get_current_time, None)


@pytest.fixture
def client(clock):
    return TestClient(app)


@pytest.fixture
def db_session():
    """Provide a database session for direct DB tests."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_delivery():
    return FakeDelivery
