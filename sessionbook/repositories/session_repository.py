# sessionbook/repositories/session_repository.py
"""
Session Repository for SessionBook

The SessionStore collaborator: conflict queries against active sessions,
participant listings, and compare-and-set status transitions.

Conflict queries use the session's own absolute UTC instants, so a
change to a provider's availability windows never alters what counts as
a clash.
"""

from datetime import datetime
import logging
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import SessionStatus
from ..core.exceptions import RepositoryException
from ..models.profile import ProviderProfile, RequesterProfile
from ..models.session import BookedSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_STATUSES = [status.value for status in SessionStatus.active()]
_TERMINAL_STATUSES = [status.value for status in SessionStatus.terminal()]


class SessionRepository(BaseRepository[BookedSession]):
    def __init__(self, db: Session):
        super().__init__(db, BookedSession)

    # Conflict queries

    def get_overlapping_active_sessions(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> List[BookedSession]:
        """
        Active sessions of the provider intersecting [start, end).

        Ordered by earliest start so callers can report the first clash.
        """
        try:
            query = self.db.query(BookedSession).filter(
                BookedSession.provider_id == provider_id,
                BookedSession.status.in_(_ACTIVE_STATUSES),
                BookedSession.scheduled_start < end,
                BookedSession.scheduled_end > start,
            )
            if exclude_session_id:
                query = query.filter(BookedSession.id != exclude_session_id)
            return query.order_by(BookedSession.scheduled_start, BookedSession.id).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting overlapping sessions for {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to check session conflicts: {str(e)}")

    # Listings

    def get_upcoming_for_profiles(
        self, profile_ids: Sequence[str], now: datetime, limit: int
    ) -> List[BookedSession]:
        if not profile_ids:
            return []
        try:
            return (
                self.db.query(BookedSession)
                .filter(
                    or_(
                        BookedSession.provider_id.in_(profile_ids),
                        BookedSession.requester_id.in_(profile_ids),
                    ),
                    BookedSession.status == SessionStatus.SCHEDULED.value,
                    BookedSession.scheduled_start >= now,
                )
                .order_by(BookedSession.scheduled_start.asc(), BookedSession.id)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting upcoming sessions: {str(e)}")
            raise RepositoryException(f"Failed to retrieve upcoming sessions: {str(e)}")

    def get_past_for_profiles(self, profile_ids: Sequence[str], limit: int) -> List[BookedSession]:
        if not profile_ids:
            return []
        try:
            return (
                self.db.query(BookedSession)
                .filter(
                    or_(
                        BookedSession.provider_id.in_(profile_ids),
                        BookedSession.requester_id.in_(profile_ids),
                    ),
                    BookedSession.status.in_(_TERMINAL_STATUSES),
                )
                .order_by(BookedSession.scheduled_start.desc(), BookedSession.id)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting past sessions: {str(e)}")
            raise RepositoryException(f"Failed to retrieve past sessions: {str(e)}")

    def get_profile_ids_for_user(self, user_id: str) -> List[str]:
        """Provider and requester profile ids owned by ``user_id``."""
        try:
            provider_ids = [
                row[0]
                for row in self.db.query(ProviderProfile.id)
                .filter(ProviderProfile.user_id == user_id)
                .all()
            ]
            requester_ids = [
                row[0]
                for row in self.db.query(RequesterProfile.id)
                .filter(RequesterProfile.user_id == user_id)
                .all()
            ]
            return provider_ids + requester_ids
        except SQLAlchemyError as e:
            self.logger.error(f"Error resolving profiles for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to resolve user profiles: {str(e)}")

    # Writes

    def transition(
        self,
        session_id: str,
        from_statuses: Iterable[SessionStatus],
        **fields: Any,
    ) -> bool:
        """
        Compare-and-set update: apply ``fields`` only while the session is
        still in one of ``from_statuses``.

        Returns False when another writer already moved the session.
        """
        allowed = [status.value for status in from_statuses]
        values = {
            key: (value.value if isinstance(value, SessionStatus) else value)
            for key, value in fields.items()
        }
        try:
            result = self.db.execute(
                update(BookedSession)
                .where(BookedSession.id == session_id, BookedSession.status.in_(allowed))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            moved = result.rowcount == 1
            if moved:
                session = self.db.get(BookedSession, session_id)
                if session is not None:
                    self.db.refresh(session)
            return moved
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error transitioning session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to update session: {str(e)}")
