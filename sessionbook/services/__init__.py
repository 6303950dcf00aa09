# sessionbook/services/__init__.py
"""
Service layer for SessionBook.

Services own business rules and transaction boundaries; repositories
below them only read and write.
"""

from .availability_service import AvailabilityService
from .base import BaseService
from .compatibility_scorer import CompatibilityScorer
from .conflict_checker import ConflictDetector, overlaps
from .match_ranker import MatchRanker
from .session_service import SessionService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "CompatibilityScorer",
    "ConflictDetector",
    "MatchRanker",
    "SessionService",
    "overlaps",
]
