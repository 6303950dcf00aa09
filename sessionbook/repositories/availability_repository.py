# sessionbook/repositories/availability_repository.py
"""
Availability Repository for SessionBook

The AvailabilityStore collaborator: reads and writes a provider's
availability windows. Overlap validation belongs to AvailabilityService;
this layer only stores what it is given.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityWindow
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityWindow]):
    def __init__(self, db: Session):
        super().__init__(db, AvailabilityWindow)

    def get_windows_for_provider(self, provider_id: str) -> List[AvailabilityWindow]:
        try:
            return (
                self.db.query(AvailabilityWindow)
                .filter(AvailabilityWindow.provider_id == provider_id)
                .order_by(
                    AvailabilityWindow.day_of_week,
                    AvailabilityWindow.start_time,
                    AvailabilityWindow.id,
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting windows for provider {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve availability: {str(e)}")

    def get_windows_for_day(
        self,
        provider_id: str,
        day_of_week: int,
        on_date: Optional[date] = None,
        enabled_only: bool = True,
    ) -> List[AvailabilityWindow]:
        """
        Windows on ``day_of_week``.

        With ``on_date`` only recurring windows and windows pinned to that
        date are returned; without it every window of the weekday is.
        """
        try:
            query = self.db.query(AvailabilityWindow).filter(
                AvailabilityWindow.provider_id == provider_id,
                AvailabilityWindow.day_of_week == day_of_week,
            )
            if enabled_only:
                query = query.filter(AvailabilityWindow.is_enabled.is_(True))
            if on_date is not None:
                query = query.filter(
                    or_(
                        AvailabilityWindow.is_recurring.is_(True),
                        AvailabilityWindow.specific_date == on_date,
                    )
                )
            return query.order_by(AvailabilityWindow.start_time, AvailabilityWindow.id).all()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error getting windows for provider {provider_id} day {day_of_week}: {str(e)}"
            )
            raise RepositoryException(f"Failed to retrieve availability: {str(e)}")

    def delete_recurring_windows(self, provider_id: str) -> int:
        try:
            count = (
                self.db.query(AvailabilityWindow)
                .filter(
                    AvailabilityWindow.provider_id == provider_id,
                    AvailabilityWindow.is_recurring.is_(True),
                )
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return count
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting recurring windows for {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete availability: {str(e)}")

    def bulk_create_windows(self, windows: List[dict]) -> List[AvailabilityWindow]:
        if not windows:
            return []
        try:
            created = [AvailabilityWindow(**data) for data in windows]
            self.db.add_all(created)
            self.db.flush()
            return created
        except SQLAlchemyError as e:
            self.logger.error(f"Error bulk creating windows: {str(e)}")
            raise RepositoryException(f"Failed to create availability: {str(e)}")
