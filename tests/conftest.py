from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import func, select

from hospital.db import db_session, make_engine, make_session_factory
from hospital.models import Appointment
from hospital.repository import init_db


@pytest.fixture
def engine():
    """In-memory SQLite with the schema created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def s(session_factory):
    with db_session(session_factory) as session:
        yield session


@pytest.fixture
def when() -> datetime:
    return datetime(2026, 3, 2, 9, 30)


@pytest.fixture
def appointment_count(session_factory):
    """Counts committed appointments through a separate session."""

    def _count() -> int:
        with db_session(session_factory) as other:
            return other.scalar(select(func.count()).select_from(Appointment))

    return _count
