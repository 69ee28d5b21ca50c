"""
Pytest configuration and fixtures for tournament backend tests.

Every test gets its own file-backed SQLite database so that services can
commit and roll back freely and threads can share the store.
"""
import os
import pathlib
import sys
from datetime import timedelta

import pytest

os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_tourney.db")

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from tourney.core.clock import utcnow  # noqa: E402
from tourney.core.config import settings  # noqa: E402
from tourney.db import Base, get_db  # noqa: E402
from tourney.models import User, Tournament, TournamentStatus  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """
    Provide a database session for each test.

    IMPORTANT: use dependency overrides (see ``client``) rather than patching
    the app's session factory.
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Stub delivery and open admin routes unless a test says otherwise."""
    monkeypatch.setattr(settings, "OTP_PROVIDER", "stub")
    monkeypatch.setattr(settings, "OTP_FALLBACK_PROVIDER", "none")
    monkeypatch.setattr(settings, "ADMIN_API_KEY", "")
    monkeypatch.setattr(settings, "PHONE_DEFAULT_REGION", "IN")
    return settings


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from tourney.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(phone="+12015550123", name="Test Player", age=25, consent=True):
        user = User(phone=phone, name=name, age=age, consent_given=consent)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_tournament(db):
    """Insert a tournament directly, bypassing creation rules (e.g. past start times)."""

    def _make_tournament(
        start_in=timedelta(hours=1),
        max_players=100,
        status=TournamentStatus.UPCOMING.value,
        **overrides,
    ):
        now = utcnow()
        fields = dict(
            game_type="BGMI",
            title="Sunday Showdown",
            start_time=now + start_in,
            entry_fee=50.0,
            per_kill=10.0,
            winning_amount=1000.0,
            max_players=max_players,
            room_id="room-42",
            room_password="s3cret",
            status=status,
            player_count=0,
            created_at=now,
            updated_at=now,
        )
        fields.update(overrides)
        tournament = Tournament(**fields)
        db.add(tournament)
        db.commit()
        db.refresh(tournament)
        return tournament

    return _make_tournament
