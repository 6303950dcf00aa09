# sessionbook/repositories/__init__.py
"""
Repository layer for SessionBook.

Data access only; services own transactions and business rules.
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .profile_repository import ProfileRepository
from .session_repository import SessionRepository
from .stats_repository import ProfileStatsRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "ProfileRepository",
    "ProfileStatsRepository",
    "RepositoryFactory",
    "SessionRepository",
]
