"""
Pytest configuration and fixtures

All tests use transactional rollback isolation against an in-memory SQLite
database. Nothing created during a test outlives it, and no test talks to
Strava or Anthropic: those clients are mocked.
"""
import os
import sys
from datetime import date
from unittest.mock import MagicMock

import pytest
from cryptography.fernet import Fernet

# Settings are read once at import time, so the environment goes first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["TOKEN_ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["STRAVA_CLIENT_ID"] = "12345"
os.environ["STRAVA_CLIENT_SECRET"] = "test-secret"
os.environ["WEB_APP_BASE_URL"] = "http://localhost:3000"
os.environ.pop("CRON_SECRET", None)
os.environ.pop("SENTRY_DSN", None)

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
import models  # noqa: F401
from models import Phase, Week
from services.strava_service import StravaClient


test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN.
@event.listens_for(test_engine, "connect")
def _sqlite_connect(dbapi_conn, connection_record):
    dbapi_conn.isolation_level = None


@event.listens_for(test_engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(test_engine)
    yield
    Base.metadata.drop_all(test_engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a database session with transactional rollback.

    Application code may call session.commit(); each commit only releases a
    savepoint inside the outer transaction, which is rolled back at the end.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def strava_client():
    """A StravaClient double; tests program its return values."""
    client = MagicMock(spec=StravaClient)
    client.page_size = 100
    client.fetch_activities_page.return_value = []
    return client


@pytest.fixture
def client(db_session, strava_client):
    """TestClient whose requests share the test's session and Strava double."""
    from main import app
    from routers.strava import get_strava_client

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_strava_client] = lambda: strava_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_plan(db_session):
    """
    One phase with two consecutive weeks:
    week 1: 2025-01-06 .. 2025-01-12, target 50 km
    week 2: 2025-01-13 .. 2025-01-19, target 55 km
    """
    phase = Phase(name="Base", start_date=date(2025, 1, 6), end_date=date(2025, 2, 2))
    db_session.add(phase)
    db_session.flush()

    week1 = Week(phase_id=phase.id, week_number=1, start_date=date(2025, 1, 6), end_date=date(2025, 1, 12), target_km=50)
    week2 = Week(phase_id=phase.id, week_number=2, start_date=date(2025, 1, 13), end_date=date(2025, 1, 19), target_km=55)
    db_session.add_all([week1, week2])
    db_session.commit()
    return {"phase": phase, "week1": week1, "week2": week2}

