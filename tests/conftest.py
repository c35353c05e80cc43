"""Pytest configuration and fixtures for tests."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from datetime import datetime, timedelta, timezone
from dateutil.relativedelta import relativedelta
from typing import Generator, List
from contextlib import contextmanager

from shiftboard.database import Base
import shiftboard.models  # noqa: F401
from shiftboard.services.activity import ActivityEvent, ActivityLogger
from shiftboard.services.lifecycle_service import ShiftLifecycleService
from shiftboard.services.claim_service import ClaimArbiter
from shiftboard.services.swap_service import SwapWorkflow


START = datetime(2030, 1, 7, 8, 0, 0)


class FixedClock:
    """Manually advanced clock returning naive UTC datetimes."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + relativedelta(**kwargs)
        return self.now


class RecordingActivityLogger(ActivityLogger):
    """Keeps emitted events in memory for assertions."""

    def __init__(self):
        self.events: List[ActivityEvent] = []

    def emit(self, event: ActivityEvent) -> None:
        self.events.append(event)

    def actions(self, entity_type: str = None) -> List[str]:
        return [e.action for e in self.events if entity_type is None or e.entity_type == entity_type]


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a test database session for each test.
    Uses an in-memory SQLite database for fast testing.
    """
    # Create in-memory SQLite database for testing
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@contextmanager
def get_test_db_session():
    """
    Context manager for creating test database sessions.
    Used for property-based tests where fixtures don't work well.
    """
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(bind=engine)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def activity_log() -> RecordingActivityLogger:
    return RecordingActivityLogger()


@pytest.fixture
def lifecycle(test_db, clock, activity_log) -> ShiftLifecycleService:
    return ShiftLifecycleService(test_db, now_fn=clock, activity_logger=activity_log, require_acceptance=True)


@pytest.fixture
def arbiter(test_db, clock, activity_log, lifecycle) -> ClaimArbiter:
    return ClaimArbiter(test_db, now_fn=clock, activity_logger=activity_log, lifecycle=lifecycle)


@pytest.fixture
def workflow(test_db, clock, activity_log, lifecycle) -> SwapWorkflow:
    return SwapWorkflow(test_db, now_fn=clock, activity_logger=activity_log, lifecycle=lifecycle)


def make_shift(service: ShiftLifecycleService, **overrides):
    """Create an open shift starting one day after the service clock."""
    start = overrides.pop("start_time", service.now_fn() + relativedelta(days=1))
    values = {
        "title": "Morning shift",
        "location_id": "loc-1",
        "start_time": start,
        "end_time": start + relativedelta(hours=8),
        "created_by": "manager-1",
        "max_people": 1,
    }
    values.update(overrides)
    return service.create_shift(**values)


def seat_user(service: ShiftLifecycleService, shift_id: str, user_id: str):
    """Give a user an accepted assignment directly."""
    return service.assign(shift_id, user_id, "manager-1", require_acceptance=False)


API = "/api"

MANAGER = {"X-Actor-Id": "manager-1", "X-Actor-Role": "manager"}


def employee(user_id: str) -> dict:
    return {"X-Actor-Id": user_id, "X-Actor-Role": "employee"}


def shift_payload(**overrides):
    start = datetime.now(timezone.utc) + timedelta(days=3)
    payload = {
        "title": "Weekend cover",
        "location_id": "loc-1",
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=8)).isoformat(),
        "max_people": 1,
    }
    payload.update(overrides)
    return payload


def create_shift(client, **overrides):
    response = client.post(f"{API}/shifts", json=shift_payload(**overrides), headers=MANAGER)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def client():
    """
    Create test client backed by a shared in-memory database.

    StaticPool keeps one connection so every request sees the same data.
    """
    from fastapi.testclient import TestClient
    from sqlalchemy.pool import StaticPool
    from main import app
    from shiftboard.database import get_db

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        """Override database dependency for testing."""
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.rate_limiter.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.rate_limiter.reset()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
