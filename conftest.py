import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TOKEN_SWEEPER_ENABLED", "false")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import database
from main import app
from tokens import now_ms


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[database.get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    def _make(user_id, is_admin=False):
        with session_factory() as session:
            session.add(database.User(id=user_id, email=f"{user_id}@example.com", is_admin=is_admin))
            session.commit()
    return _make


@pytest.fixture
def make_subscription(session_factory):
    def _make(user_id, end_in=timedelta(hours=1), active=True, plan_id="1hour"):
        now = datetime.now(timezone.utc)
        with session_factory() as session:
            session.add(database.Subscription(
                user_id=user_id,
                plan_id=plan_id,
                start_date=now - timedelta(days=1),
                end_date=now + end_in,
                active=active,
            ))
            session.commit()
    return _make


@pytest.fixture
def make_token(session_factory):
    def _make(token="a" * 64, expires_in_ms=60_000, used=False,
              stream_url="https://cdn.example.com/video.mp4", title="Demo"):
        with session_factory() as session:
            session.add(database.DownloadToken(
                token=token,
                user_id="u1",
                content_id="c1",
                content_type="movie",
                stream_url=stream_url,
                title=title,
                expires_at=now_ms() + expires_in_ms,
                used=used,
            ))
            session.commit()
        return token
    return _make


@pytest.fixture
def load_token(session_factory):
    """Reads a token row through a fresh session; None if it is gone."""
    def _load(token):
        with session_factory() as session:
            record = session.get(database.DownloadToken, token)
            if record is None:
                return None
            return {"used": record.used, "expires_at": record.expires_at, "user_id": record.user_id}
    return _load


@pytest.fixture
def load_subscription(session_factory):
    def _load(user_id):
        with session_factory() as session:
            record = session.get(database.Subscription, user_id)
            return None if record is None else {"active": record.active, "plan_id": record.plan_id}
    return _load
