"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no external server is required for
tests. The alert tracker runs against a fixed, manually advanced clock.
"""
import os

SQLITE_URL = "sqlite:///./test_skywatch.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, delete  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from skywatch.db.base import Base, get_db  # noqa: E402
from skywatch.main import app  # noqa: E402
from skywatch.models.sent_alert import SentAlert  # noqa: E402
from skywatch.routers.alerts import get_alert_tracker  # noqa: E402
from skywatch.services.alert_tracker import AlertTracker  # noqa: E402
from skywatch.services.record_store import InMemoryRecordStore, SqlAlchemyRecordStore  # noqa: E402

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

NOW = datetime(2026, 3, 14, 21, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def sql_store(db):
    db.execute(delete(SentAlert))
    db.commit()
    return SqlAlchemyRecordStore(TestingSessionLocal)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryRecordStore()
    return request.getfixturevalue("sql_store")


@pytest.fixture()
def tracker(store, clock):
    return AlertTracker(store, clock=clock)


@pytest.fixture()
def sql_tracker(sql_store, clock):
    return AlertTracker(sql_store, clock=clock)


@pytest.fixture()
def client(sql_tracker):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_alert_tracker] = lambda: sql_tracker
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
