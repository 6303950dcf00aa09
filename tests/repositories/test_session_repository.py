# tests/repositories/test_session_repository.py
"""Tests for the session repository's conditional updates and queries."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from sessionbook.core.enums import SessionStatus
from sessionbook.repositories import RepositoryFactory

START = datetime(2026, 3, 3, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_session_repository(db)


@pytest.fixture
def make_session(db, repository, provider, requester):
    def _make(start=START, minutes=60, status=SessionStatus.SCHEDULED):
        with repository.transaction():
            return repository.create(
                provider_id=provider.id,
                requester_id=requester.id,
                scheduled_start=start,
                scheduled_end=start + timedelta(minutes=minutes),
                duration_minutes=minutes,
                timezone="UTC",
                status=status.value,
            )

    return _make


class TestTransition:
    def test_moves_when_status_matches(self, db, repository, make_session):
        session = make_session()

        moved = repository.transition(
            session.id, (SessionStatus.SCHEDULED,), status=SessionStatus.IN_PROGRESS
        )
        db.commit()

        assert moved is True
        assert repository.get_by_id(session.id).status == SessionStatus.IN_PROGRESS.value

    def test_stale_status_leaves_row_untouched(self, db, repository, make_session):
        session = make_session()
        repository.transition(session.id, (SessionStatus.SCHEDULED,), status=SessionStatus.COMPLETED)
        db.commit()

        moved = repository.transition(
            session.id,
            (SessionStatus.SCHEDULED,),
            status=SessionStatus.CANCELLED_BY_REQUESTER,
        )

        assert moved is False
        assert repository.get_by_id(session.id).status == SessionStatus.COMPLETED.value


class TestOverlapGuard:
    def test_insert_overlapping_active_session_fails(self, repository, make_session):
        make_session()

        with pytest.raises(IntegrityError) as exc_info:
            make_session(start=START + timedelta(minutes=59))

        assert "sessions_no_overlap_per_provider" in str(exc_info.value)

    def test_inactive_sessions_do_not_block(self, repository, make_session, provider):
        make_session(status=SessionStatus.CANCELLED_BY_PROVIDER)
        make_session()

        found = repository.get_overlapping_active_sessions(
            provider.id, START, START + timedelta(minutes=60)
        )
        assert [s.status for s in found] == [SessionStatus.SCHEDULED.value]
