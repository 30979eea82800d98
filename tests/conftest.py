from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from contest_tracker.config import Settings
from contest_tracker.db import create_db_engine, init_db
from contest_tracker.main import create_app
from contest_tracker.models import ContestCreate
from contest_tracker.repositories.bookmarks import BookmarkRepository
from contest_tracker.repositories.contests import ContestRepository
from contest_tracker.repositories.solutions import SolutionRepository
from contest_tracker.repositories.users import UserRepository

START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def contest_data(start: datetime, hours: int = 2, **overrides) -> ContestCreate:
    fields = dict(
        title="Weekly Round",
        platform="codeforces",
        category="algorithms",
        description="Five problems, two hours.",
        start_date=start,
        end_date=start + timedelta(hours=hours),
    )
    fields.update(overrides)
    return ContestCreate(**fields)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        secret_key="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'repo.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def users(engine):
    return UserRepository(engine)


@pytest.fixture
def contests(engine, clock):
    return ContestRepository(engine, clock)


@pytest.fixture
def bookmarks(engine, clock):
    return BookmarkRepository(engine, clock)


@pytest.fixture
def solutions(engine, clock):
    return SolutionRepository(engine, clock)


@pytest.fixture
def alice(users):
    return users.register("Alice", "alice@example.com", "secret1")


@pytest.fixture
def bob(users):
    return users.register("Bob", "bob@example.com", "secret2")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register(app, client):
    """Register a user through the API and return a client carrying their cookie."""
    opened = []

    def _register(name: str, email: str, password: str = "secret123") -> TestClient:
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        token = response.json()["token"]
        client.cookies.clear()
        user_client = TestClient(app, cookies={"AUTH_TOKEN": token})
        opened.append(user_client)
        return user_client

    yield _register
    for user_client in opened:
        user_client.close()
