# tests/conftest.py
"""
Shared fixtures.

Every test gets its own in-memory SQLite database so the overlap
triggers and the commit/rollback behaviour of the services run for real.
Time is pinned with a FixedClock at Monday 2026-03-02 08:00 UTC.
"""

from datetime import datetime, time, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sessionbook import models  # noqa: F401
from sessionbook.core.clock import FixedClock
from sessionbook.database import Base
from sessionbook.engine import SchedulingEngine
from sessionbook.models.availability import AvailabilityWindow

from .factories import build_provider, build_requester

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)  # Monday


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(sqlite_engine) -> Session:
    SessionLocal = sessionmaker(
        bind=sqlite_engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def make_provider(db):
    def _make(**overrides):
        provider = build_provider(**overrides)
        db.add(provider)
        db.commit()
        return provider

    return _make


@pytest.fixture
def make_requester(db):
    def _make(**overrides):
        requester = build_requester(**overrides)
        db.add(requester)
        db.commit()
        return requester

    return _make


@pytest.fixture
def add_window(db):
    def _add(provider, day_of_week, start, end, **overrides):
        window = AvailabilityWindow(
            provider_id=provider.id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            is_recurring=overrides.pop("is_recurring", True),
            is_enabled=overrides.pop("is_enabled", True),
            **overrides,
        )
        db.add(window)
        db.commit()
        return window

    return _add


@pytest.fixture
def provider(make_provider):
    return make_provider()


@pytest.fixture
def requester(make_requester):
    return make_requester()


@pytest.fixture
def open_all_week(add_window, provider):
    """The default provider takes bookings around the clock every day."""
    for day in range(7):
        add_window(provider, day, time(0, 0), time(23, 59))
    return provider


@pytest.fixture
def engine(db, clock) -> SchedulingEngine:
    return SchedulingEngine(db, clock=clock)
