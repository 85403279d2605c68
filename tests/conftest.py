"""
Pytest fixtures for aftercare tests.

Provides an in-memory application, a test client, and a per-test clean
database.
"""

from datetime import datetime, timedelta

import pytest
from aftercare import create_app
from aftercare.extensions import db
from aftercare.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BOOKING_RETRY_BACKOFF': 0.0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client on a clean database."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture
def tomorrow() -> datetime:
    """Midnight (UTC) of the next day; keeps booking tests in the future."""
    now = utcnow()
    return datetime(now.year, now.month, now.day) + timedelta(days=1)


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def iso(dt: datetime) -> str:
    return dt.isoformat() + "Z"
