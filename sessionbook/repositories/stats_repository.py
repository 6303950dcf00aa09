# sessionbook/repositories/stats_repository.py
"""
Default StatsCollaborator backed by the profile tables.

Counters move with single ``UPDATE ... SET n = n + 1`` statements issued in
the caller's transaction, so they commit or roll back together with the
session row that caused them.
"""

import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.profile import ProviderProfile, RequesterProfile

logger = logging.getLogger(__name__)


class ProfileStatsRepository:
    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(__name__)

    def record_session_booked(self, provider_id: str, requester_id: str) -> None:
        try:
            self.db.execute(
                update(ProviderProfile)
                .where(ProviderProfile.id == provider_id)
                .values(total_sessions=ProviderProfile.total_sessions + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(RequesterProfile)
                .where(RequesterProfile.id == requester_id)
                .values(total_sessions=RequesterProfile.total_sessions + 1)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording booked session stats: {str(e)}")
            raise RepositoryException(f"Failed to update session counters: {str(e)}")

    def record_session_completed(
        self, provider_id: str, requester_id: str, duration_minutes: int
    ) -> None:
        try:
            self.db.execute(
                update(ProviderProfile)
                .where(ProviderProfile.id == provider_id)
                .values(completed_sessions=ProviderProfile.completed_sessions + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(RequesterProfile)
                .where(RequesterProfile.id == requester_id)
                .values(
                    completed_sessions=RequesterProfile.completed_sessions + 1,
                    total_hours=RequesterProfile.total_hours + duration_minutes / 60.0,
                )
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording completed session stats: {str(e)}")
            raise RepositoryException(f"Failed to update completion counters: {str(e)}")
