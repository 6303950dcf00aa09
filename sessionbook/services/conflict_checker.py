# sessionbook/services/conflict_checker.py
"""
Conflict Detector Service for SessionBook

Decides whether a provider can take a candidate interval and generates
free slots for a day:
- Checking a candidate against the provider's active sessions
- Checking it against the provider's declared availability windows
- Listing bookable slots inside those windows

Session clashes are compared as absolute UTC instants; window containment
is compared in wall-clock minutes of the provider's timezone. The service
is read-only; a negative answer is a normal return value.

Known limitations: window end times are stored as ``Time`` values and
cannot be 24:00, so the last minute of a day is never bookable, and a
candidate whose local interval crosses midnight never fits a window.
Slot starts that fall in a spring-forward gap are not offered.
"""

from datetime import date, datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.constants import MAX_SLOT_STEP_MINUTES
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import (
    day_of_week,
    ensure_utc,
    local_to_utc,
    localize_wall_time,
    minutes_of_day,
    minutes_to_time,
    to_local,
)
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import AvailabilityCheckResult, AvailableSlot, ConflictCheckResult
from .base import BaseService
from .collaborators import AvailabilityStore, ProfileStore, SessionStore

logger = logging.getLogger(__name__)

SESSION_CONFLICT_REASON = "Time slot conflicts with an existing session"
NO_WINDOW_REASON = "Provider is not available on this day"
OUTSIDE_WINDOW_REASON = "Requested time is outside the provider's availability window"
AVAILABLE_REASON = "Slot is available for booking"


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval intersection; touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


class ConflictDetector(BaseService):
    """
    Service for availability and conflict checks.

    Centralizes the "can this provider take this interval" question so
    booking, rescheduling and slot listing all answer it the same way.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        profile_repository: Optional[ProfileStore] = None,
        session_repository: Optional[SessionStore] = None,
        availability_repository: Optional[AvailabilityStore] = None,
    ):
        super().__init__(db, clock)
        self.profile_repository = profile_repository or RepositoryFactory.create_profile_repository(db)
        self.session_repository = session_repository or RepositoryFactory.create_session_repository(db)
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )

    def _get_provider_or_raise(self, provider_id: str):
        provider = self.profile_repository.get_provider(provider_id)
        if provider is None:
            raise NotFoundException(f"Provider {provider_id} not found", code="PROVIDER_NOT_FOUND")
        return provider

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self,
        provider_id: str,
        start: datetime,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None,
    ) -> AvailabilityCheckResult:
        """
        Check whether the provider can take [start, start + duration).

        Args:
            provider_id: Provider profile id
            start: Candidate start; naive values are treated as UTC
            duration_minutes: Candidate length
            exclude_session_id: Session to ignore, used when rescheduling it

        Returns:
            AvailabilityCheckResult naming the first clashing session, if any
        """
        if duration_minutes <= 0:
            raise ValidationException("Duration must be positive", code="INVALID_DURATION")

        provider = self._get_provider_or_raise(provider_id)
        start = ensure_utc(start)
        end = start + timedelta(minutes=duration_minutes)

        clashes = self.session_repository.get_overlapping_active_sessions(
            provider_id, start, end, exclude_session_id
        )
        if clashes:
            self.logger.debug(
                f"Candidate {start.isoformat()} for provider {provider_id} "
                f"clashes with session {clashes[0].id}"
            )
            return AvailabilityCheckResult(
                available=False,
                reason=SESSION_CONFLICT_REASON,
                conflicting_session_id=clashes[0].id,
            )

        local_start = to_local(start, provider.timezone)
        local_date = local_start.date()
        windows = self.availability_repository.get_windows_for_day(
            provider_id, day_of_week(local_start), on_date=local_date
        )
        windows = [window for window in windows if window.applies_to(local_date)]
        if not windows:
            return AvailabilityCheckResult(available=False, reason=NO_WINDOW_REASON)

        # Window ends are before midnight, so a candidate crossing it never fits
        start_minute = minutes_of_day(local_start)
        end_minute = start_minute + duration_minutes
        for window in windows:
            if (
                minutes_of_day(window.start_time) <= start_minute
                and end_minute <= minutes_of_day(window.end_time)
            ):
                return AvailabilityCheckResult(available=True, reason=AVAILABLE_REASON)

        return AvailabilityCheckResult(available=False, reason=OUTSIDE_WINDOW_REASON)

    @BaseService.measure_operation("check_conflict")
    def check_conflict(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> ConflictCheckResult:
        """Every active session of the provider intersecting [start, end)."""
        start = ensure_utc(start)
        end = ensure_utc(end)
        if end <= start:
            raise ValidationException("End must be after start", code="INVALID_TIME_RANGE")

        clashes = self.session_repository.get_overlapping_active_sessions(
            provider_id, start, end, exclude_session_id
        )
        return ConflictCheckResult(
            has_conflict=bool(clashes),
            conflicting_session_ids=[session.id for session in clashes],
        )

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(
        self, provider_id: str, on_date: date, duration_minutes: int
    ) -> List[AvailableSlot]:
        """
        Bookable slots of ``duration_minutes`` on ``on_date`` (provider-local).

        Candidate starts step by min(duration, 30) minutes through every
        enabled window of the day; candidates colliding with an active
        session are dropped.
        """
        if duration_minutes <= 0:
            raise ValidationException("Duration must be positive", code="INVALID_DURATION")

        provider = self._get_provider_or_raise(provider_id)
        windows = self.availability_repository.get_windows_for_day(
            provider_id, day_of_week(on_date), on_date=on_date
        )
        windows = [window for window in windows if window.applies_to(on_date)]
        if not windows:
            return []

        day_start = local_to_utc(on_date, minutes_to_time(0), provider.timezone)
        day_end = day_start + timedelta(days=1, hours=2)
        booked = self.session_repository.get_overlapping_active_sessions(
            provider_id, day_start - timedelta(hours=2), day_end
        )

        step = min(duration_minutes, MAX_SLOT_STEP_MINUTES)
        slots: List[AvailableSlot] = []
        seen_starts = set()
        for window in windows:
            window_end = minutes_of_day(window.end_time)
            current = minutes_of_day(window.start_time)
            while current + duration_minutes <= window_end:
                slot_start = localize_wall_time(on_date, minutes_to_time(current), provider.timezone)
                if slot_start is None or slot_start in seen_starts:
                    # Skipped by a DST jump, or the same instant as an earlier start
                    current += step
                    continue
                slot_end = slot_start + timedelta(minutes=duration_minutes)
                if not any(
                    overlaps(slot_start, slot_end, session.scheduled_start, session.scheduled_end)
                    for session in booked
                ):
                    slots.append(
                        AvailableSlot(
                            start=slot_start,
                            end=slot_end,
                            local_date=on_date,
                            local_start_time=minutes_to_time(current),
                            local_end_time=to_local(slot_end, provider.timezone).time(),
                            duration_minutes=duration_minutes,
                        )
                    )
                    seen_starts.add(slot_start)
                current += step

        slots.sort(key=lambda slot: slot.start)
        return slots
