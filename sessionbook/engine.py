# sessionbook/engine.py
"""
SchedulingEngine: the single entry point a transport layer talks to.

Wires the services for one unit of work around a database session. Pass
explicit collaborators (clock, payment, stats) to replace the defaults.
"""

from datetime import date, datetime
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from .core.clock import Clock, SystemClock
from .core.enums import ParticipantRole
from .models.availability import AvailabilityWindow
from .models.session import BookedSession
from .schemas.availability import (
    AvailabilityCheckResult,
    AvailabilityWindowCreate,
    AvailabilityWindowUpdate,
    AvailableSlot,
    ConflictCheckResult,
    WeeklyPattern,
)
from .schemas.matching import CompatibilityResult, MatchPreferences, RankedMatch
from .schemas.session import CancellationOutcome, SessionMetadata, SessionOutcome, SessionReschedule
from .services.availability_service import AvailabilityService
from .services.collaborators import PaymentCollaborator, StatsCollaborator
from .services.conflict_checker import ConflictDetector
from .services.match_ranker import MatchRanker
from .services.session_service import SessionService

logger = logging.getLogger(__name__)


class SchedulingEngine:
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        payment: Optional[PaymentCollaborator] = None,
        stats: Optional[StatsCollaborator] = None,
    ):
        self.db = db
        self.clock = clock or SystemClock()
        self.conflicts = ConflictDetector(db, clock=self.clock)
        self.sessions = SessionService(
            db,
            clock=self.clock,
            conflict_detector=self.conflicts,
            stats=stats,
            payment=payment,
        )
        self.availability = AvailabilityService(db, clock=self.clock)
        self.matcher = MatchRanker(db, clock=self.clock)

    # Availability and conflicts

    def check_availability(
        self,
        provider_id: str,
        start: datetime,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None,
    ) -> AvailabilityCheckResult:
        return self.conflicts.check_availability(
            provider_id, start, duration_minutes, exclude_session_id
        )

    def check_conflict(self, provider_id: str, start: datetime, end: datetime) -> ConflictCheckResult:
        return self.conflicts.check_conflict(provider_id, start, end)

    def get_available_slots(
        self, provider_id: str, on_date: date, duration_minutes: int
    ) -> List[AvailableSlot]:
        return self.conflicts.get_available_slots(provider_id, on_date, duration_minutes)

    def add_availability_window(
        self, provider_id: str, actor_user_id: str, data: AvailabilityWindowCreate
    ) -> AvailabilityWindow:
        return self.availability.add_window(provider_id, actor_user_id, data)

    def list_availability_windows(self, provider_id: str) -> List[AvailabilityWindow]:
        return self.availability.list_windows(provider_id)

    def update_availability_window(
        self, window_id: str, actor_user_id: str, data: AvailabilityWindowUpdate
    ) -> AvailabilityWindow:
        return self.availability.update_window(window_id, actor_user_id, data)

    def delete_availability_window(self, window_id: str, actor_user_id: str) -> bool:
        return self.availability.delete_window(window_id, actor_user_id)

    def replace_weekly_pattern(
        self, provider_id: str, actor_user_id: str, pattern: WeeklyPattern
    ) -> List[AvailabilityWindow]:
        return self.availability.replace_weekly_pattern(provider_id, actor_user_id, pattern)

    # Session lifecycle

    def create_session(
        self,
        requester_id: str,
        provider_id: str,
        start: datetime,
        duration_minutes: int,
        metadata: Optional[SessionMetadata] = None,
    ) -> BookedSession:
        return self.sessions.create_session(
            requester_id, provider_id, start, duration_minutes, metadata
        )

    def start_session(self, session_id: str, actor_id: str) -> BookedSession:
        return self.sessions.start_session(session_id, actor_id)

    def complete_session(
        self, session_id: str, actor_id: str, outcome: Optional[SessionOutcome] = None
    ) -> BookedSession:
        return self.sessions.complete_session(session_id, actor_id, outcome)

    def cancel_session(self, session_id: str, actor_id: str, reason: str) -> CancellationOutcome:
        return self.sessions.cancel_session(session_id, actor_id, reason)

    def mark_no_show(self, session_id: str, absent_party: ParticipantRole) -> BookedSession:
        return self.sessions.mark_no_show(session_id, absent_party)

    def reschedule_session(
        self, session_id: str, actor_id: str, data: SessionReschedule
    ) -> BookedSession:
        return self.sessions.reschedule_session(session_id, actor_id, data)

    def get_upcoming_sessions(self, user_id: str) -> List[BookedSession]:
        return self.sessions.get_upcoming_sessions(user_id)

    def get_past_sessions(self, user_id: str, limit: int = 20) -> List[BookedSession]:
        return self.sessions.get_past_sessions(user_id, limit)

    # Matching

    def score_compatibility(
        self,
        provider_id: str,
        requester_id: str,
        preferences: Optional[MatchPreferences] = None,
    ) -> CompatibilityResult:
        return self.matcher.score_compatibility(provider_id, requester_id, preferences)

    def rank_matches(
        self, requester_id: str, preferences: Optional[MatchPreferences] = None
    ) -> List[RankedMatch]:
        return self.matcher.rank(requester_id, preferences)

    def rank_specific(
        self,
        requester_id: str,
        candidate_ids: Iterable[str],
        preferences: Optional[MatchPreferences] = None,
    ) -> List[RankedMatch]:
        return self.matcher.rank_specific(requester_id, candidate_ids, preferences)
