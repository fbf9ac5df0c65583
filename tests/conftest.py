import datetime as dt

import pytest
from fastapi.testclient import TestClient

import habit_tracker.models  # noqa: F401
from habit_tracker.auth.dependencies import get_current_identity, get_optional_identity
from habit_tracker.auth.identity import Identity
from habit_tracker.db.database import Base, create_db_engine, create_session_factory
from habit_tracker.main import create_app
from habit_tracker.services import habits as habit_service
from habit_tracker.services.errors import Unauthenticated

ALICE = Identity(email="alice@x.com", display_name="alice", subject_id="uid-alice")
BOB = Identity(email="bob@x.com", display_name="bob", subject_id="uid-bob")


@pytest.fixture
def db():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


class Clock:
    """habit 서비스의 현재 시각을 테스트에서 고정/이동"""

    def __init__(self):
        self.now = dt.datetime(2026, 3, 1, 8, 0, 0)

    def __call__(self):
        return self.now

    def tick(self, **kwargs):
        self.now += dt.timedelta(**kwargs)


@pytest.fixture
def clock(monkeypatch):
    c = Clock()
    monkeypatch.setattr(habit_service, "_now", c)
    return c


class Viewer:
    identity = None


@pytest.fixture
def viewer():
    return Viewer()


@pytest.fixture
def client(viewer):
    app = create_app("sqlite://")

    def _current():
        if viewer.identity is None:
            raise Unauthenticated()
        return viewer.identity

    app.dependency_overrides[get_current_identity] = _current
    app.dependency_overrides[get_optional_identity] = lambda: viewer.identity

    with TestClient(app) as c:
        yield c
