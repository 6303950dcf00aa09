# sessionbook/services/availability_service.py
"""
Availability Service for SessionBook

Provider-owned management of availability windows:
- Adding, updating and deleting single windows
- Replacing the whole recurring weekly pattern in one transaction

Windows are half-open wall-clock intervals. Two enabled windows of the
same provider on the same day may not overlap; the check happens here at
write time.
"""

from datetime import date, time
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.exceptions import (
    AvailabilityOverlapException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import minutes_of_day
from ..models.availability import AvailabilityWindow
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import (
    AvailabilityWindowCreate,
    AvailabilityWindowUpdate,
    WeeklyPattern,
)
from .base import BaseService
from .collaborators import ProfileStore

logger = logging.getLogger(__name__)


def _format_interval(start: time, end: time) -> str:
    return f"{start.strftime('%H:%M')}-{end.strftime('%H:%M')}"


def _share_dates(a: AvailabilityWindow, b: AvailabilityWindow) -> bool:
    """Whether two windows on the same weekday can be live on the same date."""
    if a.is_recurring or b.is_recurring:
        return True
    return a.specific_date == b.specific_date


class AvailabilityService(BaseService):
    """Service for a provider's availability windows."""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        repository: Optional[AvailabilityRepository] = None,
        profile_repository: Optional[ProfileStore] = None,
    ):
        super().__init__(db, clock)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.profile_repository = profile_repository or RepositoryFactory.create_profile_repository(db)

    # Guards

    def _get_owned_provider(self, provider_id: str, actor_user_id: str):
        provider = self.profile_repository.get_provider(provider_id)
        if provider is None:
            raise NotFoundException(f"Provider {provider_id} not found", code="PROVIDER_NOT_FOUND")
        if provider.user_id != actor_user_id:
            raise ForbiddenException(
                "Only the provider can manage their availability", code="NOT_WINDOW_OWNER"
            )
        return provider

    def _get_owned_window(self, window_id: str, actor_user_id: str) -> AvailabilityWindow:
        window = self.repository.get_by_id(window_id)
        if window is None:
            raise NotFoundException(f"Availability window {window_id} not found", code="WINDOW_NOT_FOUND")
        self._get_owned_provider(window.provider_id, actor_user_id)
        return window

    @staticmethod
    def _ensure_valid_range(start: time, end: time) -> None:
        if minutes_of_day(start) >= minutes_of_day(end):
            raise ValidationException(
                f"Start time must be before end time ({_format_interval(start, end)})",
                code="INVALID_TIME_RANGE",
            )

    @staticmethod
    def _resolve_recurrence(is_recurring: bool, specific_date: Optional[date]) -> bool:
        """A dated window is always one-off; a one-off window needs a date."""
        if specific_date is not None:
            return False
        if not is_recurring:
            raise ValidationException(
                "A non-recurring window needs a specific_date", code="MISSING_SPECIFIC_DATE"
            )
        return True

    def _ensure_no_overlap(
        self, candidate: AvailabilityWindow, exclude_window_id: Optional[str] = None
    ) -> None:
        if not candidate.is_enabled:
            return
        siblings = self.repository.get_windows_for_day(
            candidate.provider_id, candidate.day_of_week, enabled_only=True
        )
        start_min = minutes_of_day(candidate.start_time)
        end_min = minutes_of_day(candidate.end_time)
        for existing in siblings:
            if exclude_window_id and existing.id == exclude_window_id:
                continue
            if not _share_dates(candidate, existing):
                continue
            if start_min < minutes_of_day(existing.end_time) and end_min > minutes_of_day(
                existing.start_time
            ):
                raise AvailabilityOverlapException(
                    day_of_week=candidate.day_of_week,
                    new_range=_format_interval(candidate.start_time, candidate.end_time),
                    conflicting_range=_format_interval(existing.start_time, existing.end_time),
                )

    # Operations

    @BaseService.measure_operation("add_window")
    def add_window(
        self, provider_id: str, actor_user_id: str, data: AvailabilityWindowCreate
    ) -> AvailabilityWindow:
        self.log_operation("add_window", provider_id=provider_id, day_of_week=data.day_of_week)
        self._get_owned_provider(provider_id, actor_user_id)
        self._ensure_valid_range(data.start_time, data.end_time)

        candidate = AvailabilityWindow(
            provider_id=provider_id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            is_recurring=self._resolve_recurrence(data.is_recurring, data.specific_date),
            specific_date=data.specific_date,
            is_enabled=data.is_enabled,
        )
        self._ensure_no_overlap(candidate)

        with self.transaction():
            self.db.add(candidate)
            self.db.flush()
        return candidate

    @BaseService.measure_operation("list_windows")
    def list_windows(self, provider_id: str) -> List[AvailabilityWindow]:
        if self.profile_repository.get_provider(provider_id) is None:
            raise NotFoundException(f"Provider {provider_id} not found", code="PROVIDER_NOT_FOUND")
        return self.repository.get_windows_for_provider(provider_id)

    @BaseService.measure_operation("update_window")
    def update_window(
        self, window_id: str, actor_user_id: str, data: AvailabilityWindowUpdate
    ) -> AvailabilityWindow:
        window = self._get_owned_window(window_id, actor_user_id)
        # Only specific_date may be cleared with an explicit None
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key == "specific_date"
        }
        self.log_operation("update_window", window_id=window_id, fields=sorted(changes))

        start = changes.get("start_time", window.start_time)
        end = changes.get("end_time", window.end_time)
        self._ensure_valid_range(start, end)

        specific_date = changes.get("specific_date", window.specific_date)
        is_recurring = self._resolve_recurrence(
            changes.get("is_recurring", window.is_recurring), specific_date
        )
        if specific_date is not None and (specific_date.weekday() + 1) % 7 != window.day_of_week:
            raise ValidationException(
                "specific_date does not fall on the window's day of week", code="INVALID_DATE"
            )

        candidate = AvailabilityWindow(
            id=window.id,
            provider_id=window.provider_id,
            day_of_week=window.day_of_week,
            start_time=start,
            end_time=end,
            is_recurring=is_recurring,
            specific_date=specific_date,
            is_enabled=changes.get("is_enabled", window.is_enabled),
        )
        self._ensure_no_overlap(candidate, exclude_window_id=window.id)

        with self.transaction():
            window.start_time = candidate.start_time
            window.end_time = candidate.end_time
            window.is_recurring = candidate.is_recurring
            window.specific_date = candidate.specific_date
            window.is_enabled = candidate.is_enabled
            self.db.flush()
        return window

    @BaseService.measure_operation("delete_window")
    def delete_window(self, window_id: str, actor_user_id: str) -> bool:
        window = self._get_owned_window(window_id, actor_user_id)
        self.log_operation("delete_window", window_id=window_id, provider_id=window.provider_id)
        with self.transaction():
            self.repository.delete(window.id)
        return True

    @BaseService.measure_operation("replace_weekly_pattern")
    def replace_weekly_pattern(
        self, provider_id: str, actor_user_id: str, pattern: WeeklyPattern
    ) -> List[AvailabilityWindow]:
        """
        Replace every recurring window of the provider with ``pattern``.

        Date-specific windows are left alone. Either the whole pattern is
        stored or nothing changes.
        """
        self._get_owned_provider(provider_id, actor_user_id)
        self.log_operation(
            "replace_weekly_pattern", provider_id=provider_id, entries=len(pattern.entries)
        )

        by_day: Dict[int, List[Tuple[time, time]]] = {}
        for entry in pattern.entries:
            self._ensure_valid_range(entry.start_time, entry.end_time)
            by_day.setdefault(entry.day_of_week, []).append((entry.start_time, entry.end_time))
        for day, ranges in by_day.items():
            self._ensure_ranges_disjoint(day, ranges)

        with self.transaction():
            removed = self.repository.delete_recurring_windows(provider_id)
            created = self.repository.bulk_create_windows(
                [
                    {
                        "provider_id": provider_id,
                        "day_of_week": day,
                        "start_time": start,
                        "end_time": end,
                        "is_recurring": True,
                        "is_enabled": True,
                    }
                    for day in sorted(by_day)
                    for start, end in sorted(by_day[day])
                ]
            )
        self.logger.info(
            f"Replaced weekly pattern for provider {provider_id}: "
            f"removed {removed}, created {len(created)}"
        )
        return created

    @staticmethod
    def _ensure_ranges_disjoint(day_of_week: int, ranges: Iterable[Tuple[time, time]]) -> None:
        ordered = sorted(ranges)
        for previous, current in zip(ordered, ordered[1:]):
            if minutes_of_day(current[0]) < minutes_of_day(previous[1]):
                raise AvailabilityOverlapException(
                    day_of_week=day_of_week,
                    new_range=_format_interval(*current),
                    conflicting_range=_format_interval(*previous),
                )
