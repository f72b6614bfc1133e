import os

# Settings are read at import time; keep the module-level engine in memory
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_DEFAULT", "100000/minute")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from trustcircle.core.cache import TTLCache
from trustcircle.database.db import Base, make_engine
from trustcircle.database.models import Circle, User
from trustcircle.main import app
from trustcircle.services.membership import MembershipService, get_membership_service
from trustcircle.services.store import MembershipStore


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class CountingStore(MembershipStore):
    """Records every store operation so tests can tell cache hits from store reads."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []

    async def _call(self, operation, fn, *args, **kwargs):
        self.calls.append(operation)
        return await super()._call(operation, fn, *args, **kwargs)

    def count(self, operation: str) -> int:
        return self.calls.count(operation)


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def seed(session_factory):
    """Inserts users and circles with fixed ids."""
    def _seed(users=(), circles=()):
        db = session_factory()
        try:
            for user_id, name in users:
                db.add(User(user_id=user_id, user_name=name))
            for circle_id, owner_id, name in circles:
                db.add(Circle(circle_of_trust_id=circle_id, owner_id=owner_id, circle_of_trust_name=name))
            db.commit()
        finally:
            db.close()
    return _seed


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def store(session_factory):
    return CountingStore(session_factory=session_factory, timeout_seconds=5)


@pytest.fixture
def service(store, cache):
    return MembershipService(store, cache)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_membership_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
