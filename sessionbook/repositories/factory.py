# sessionbook/repositories/factory.py
"""
Repository Factory for SessionBook

Provides centralized creation of repository instances so services can
take an explicit collaborator or fall back to the SQLAlchemy default.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .profile_repository import ProfileRepository
    from .session_repository import SessionRepository
    from .stats_repository import ProfileStatsRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        return BaseRepository(db, model)

    @staticmethod
    def create_profile_repository(db: Session) -> "ProfileRepository":
        """Create repository for provider/requester profile reads."""
        from .profile_repository import ProfileRepository

        return ProfileRepository(db)

    @staticmethod
    def create_session_repository(db: Session) -> "SessionRepository":
        """Create repository for booked session queries and transitions."""
        from .session_repository import SessionRepository

        return SessionRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for availability window operations."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_stats_repository(db: Session) -> "ProfileStatsRepository":
        """Create the default profile-counter collaborator."""
        from .stats_repository import ProfileStatsRepository

        return ProfileStatsRepository(db)
