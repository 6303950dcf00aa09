# tests/services/test_availability_service.py
"""
Tests for AvailabilityService.

Day numbering starts at Sunday = 0; 2026-03-09 is a Monday (day 1).
"""

from datetime import date, time

from pydantic import ValidationError
import pytest

from sessionbook.core.exceptions import (
    AvailabilityOverlapException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from sessionbook.schemas.availability import (
    AvailabilityWindowCreate,
    AvailabilityWindowUpdate,
    WeeklyPattern,
    WeeklyPatternEntry,
)
from sessionbook.services.availability_service import AvailabilityService

NEXT_MONDAY = date(2026, 3, 9)


@pytest.fixture
def service(db, clock):
    return AvailabilityService(db, clock=clock)


def _window(day=1, start=time(9, 0), end=time(12, 0), **kwargs):
    return AvailabilityWindowCreate(day_of_week=day, start_time=start, end_time=end, **kwargs)


class TestAddWindow:
    def test_owner_adds_window(self, service, provider):
        window = service.add_window(provider.id, provider.user_id, _window())

        assert window.id is not None
        assert window.provider_id == provider.id
        assert window.is_recurring is True
        assert [w.id for w in service.list_windows(provider.id)] == [window.id]

    def test_other_user_is_forbidden(self, service, provider, requester):
        with pytest.raises(ForbiddenException) as exc_info:
            service.add_window(provider.id, requester.user_id, _window())
        assert exc_info.value.code == "NOT_WINDOW_OWNER"

    def test_unknown_provider(self, service):
        with pytest.raises(NotFoundException):
            service.add_window("01HZZZZZZZZZZZZZZZZZZZZZZZ", "someone", _window())

    def test_overlapping_window_is_rejected(self, service, provider):
        service.add_window(provider.id, provider.user_id, _window(start=time(9, 0), end=time(12, 0)))

        with pytest.raises(AvailabilityOverlapException) as exc_info:
            service.add_window(provider.id, provider.user_id, _window(start=time(11, 0), end=time(13, 0)))

        assert exc_info.value.details["conflicting_window"] == "09:00-12:00"
        assert exc_info.value.details["new_window"] == "11:00-13:00"

    def test_adjacent_windows_are_fine(self, service, provider):
        service.add_window(provider.id, provider.user_id, _window(start=time(9, 0), end=time(12, 0)))
        service.add_window(provider.id, provider.user_id, _window(start=time(12, 0), end=time(14, 0)))

        assert len(service.list_windows(provider.id)) == 2

    def test_other_day_does_not_overlap(self, service, provider):
        service.add_window(provider.id, provider.user_id, _window(day=1))
        service.add_window(provider.id, provider.user_id, _window(day=2))

        assert len(service.list_windows(provider.id)) == 2

    def test_disabled_windows_do_not_count(self, service, provider):
        service.add_window(provider.id, provider.user_id, _window(is_enabled=False))
        service.add_window(provider.id, provider.user_id, _window())

        assert len(service.list_windows(provider.id)) == 2

    def test_specific_dates_only_clash_on_the_same_date(self, service, provider):
        following = date(2026, 3, 16)
        service.add_window(provider.id, provider.user_id, _window(specific_date=NEXT_MONDAY))
        service.add_window(provider.id, provider.user_id, _window(specific_date=following))

        with pytest.raises(AvailabilityOverlapException):
            service.add_window(provider.id, provider.user_id, _window(start=time(10, 0), end=time(11, 0)))

    def test_specific_date_forces_non_recurring(self, service, provider):
        window = service.add_window(
            provider.id, provider.user_id, _window(is_recurring=True, specific_date=NEXT_MONDAY)
        )
        assert window.is_recurring is False

    def test_one_off_window_without_date_is_rejected(self, service, provider):
        with pytest.raises(ValidationException) as exc_info:
            service.add_window(provider.id, provider.user_id, _window(is_recurring=False))
        assert exc_info.value.code == "MISSING_SPECIFIC_DATE"

    def test_schema_rejects_inverted_range(self):
        with pytest.raises(ValidationError):
            _window(start=time(12, 0), end=time(9, 0))

    def test_schema_rejects_date_on_wrong_weekday(self):
        with pytest.raises(ValidationError):
            _window(day=2, specific_date=NEXT_MONDAY)


class TestUpdateAndDelete:
    def test_update_excludes_itself_from_overlap(self, service, provider):
        window = service.add_window(provider.id, provider.user_id, _window())

        updated = service.update_window(
            window.id, provider.user_id, AvailabilityWindowUpdate(end_time=time(13, 0))
        )

        assert updated.end_time == time(13, 0)
        assert updated.start_time == time(9, 0)

    def test_update_into_a_sibling_is_rejected(self, service, provider):
        service.add_window(provider.id, provider.user_id, _window(start=time(14, 0), end=time(16, 0)))
        window = service.add_window(provider.id, provider.user_id, _window())

        with pytest.raises(AvailabilityOverlapException):
            service.update_window(
                window.id, provider.user_id, AvailabilityWindowUpdate(end_time=time(15, 0))
            )

    def test_update_checks_merged_range(self, service, provider):
        window = service.add_window(provider.id, provider.user_id, _window())

        with pytest.raises(ValidationException) as exc_info:
            service.update_window(
                window.id, provider.user_id, AvailabilityWindowUpdate(start_time=time(12, 30))
            )
        assert exc_info.value.code == "INVALID_TIME_RANGE"

    def test_update_by_other_user(self, service, provider, requester):
        window = service.add_window(provider.id, provider.user_id, _window())
        with pytest.raises(ForbiddenException):
            service.update_window(
                window.id, requester.user_id, AvailabilityWindowUpdate(is_enabled=False)
            )

    def test_dated_window_stays_one_off(self, service, provider):
        window = service.add_window(provider.id, provider.user_id, _window(specific_date=NEXT_MONDAY))

        updated = service.update_window(
            window.id, provider.user_id, AvailabilityWindowUpdate(is_recurring=True)
        )

        assert updated.is_recurring is False
        assert updated.specific_date == NEXT_MONDAY

    def test_clearing_the_date_of_a_one_off_window_is_rejected(self, service, provider):
        window = service.add_window(provider.id, provider.user_id, _window(specific_date=NEXT_MONDAY))

        with pytest.raises(ValidationException) as exc_info:
            service.update_window(
                window.id, provider.user_id, AvailabilityWindowUpdate(specific_date=None)
            )

        assert exc_info.value.code == "MISSING_SPECIFIC_DATE"
        assert service.list_windows(provider.id)[0].specific_date == NEXT_MONDAY

    def test_dated_window_can_become_recurring(self, service, provider):
        window = service.add_window(provider.id, provider.user_id, _window(specific_date=NEXT_MONDAY))

        updated = service.update_window(
            window.id,
            provider.user_id,
            AvailabilityWindowUpdate(is_recurring=True, specific_date=None),
        )

        assert updated.is_recurring is True
        assert updated.specific_date is None

    def test_delete(self, service, provider):
        window = service.add_window(provider.id, provider.user_id, _window())

        assert service.delete_window(window.id, provider.user_id) is True
        assert service.list_windows(provider.id) == []

        with pytest.raises(NotFoundException):
            service.delete_window(window.id, provider.user_id)


class TestWeeklyPattern:
    def test_replaces_recurring_and_keeps_dated_windows(self, service, provider):
        service.add_window(provider.id, provider.user_id, _window(day=3))
        dated = service.add_window(
            provider.id,
            provider.user_id,
            _window(start=time(18, 0), end=time(20, 0), specific_date=NEXT_MONDAY),
        )

        created = service.replace_weekly_pattern(
            provider.id,
            provider.user_id,
            WeeklyPattern(
                entries=[
                    WeeklyPatternEntry(day_of_week=2, start_time=time(13, 0), end_time=time(17, 0)),
                    WeeklyPatternEntry(day_of_week=1, start_time=time(9, 0), end_time=time(12, 0)),
                    WeeklyPatternEntry(day_of_week=1, start_time=time(13, 0), end_time=time(15, 0)),
                ]
            ),
        )

        assert [(w.day_of_week, w.start_time) for w in created] == [
            (1, time(9, 0)),
            (1, time(13, 0)),
            (2, time(13, 0)),
        ]
        windows = service.list_windows(provider.id)
        assert dated.id in {w.id for w in windows}
        assert 3 not in {w.day_of_week for w in windows}
        assert len(windows) == 4

    def test_overlapping_pattern_changes_nothing(self, service, provider):
        original = service.add_window(provider.id, provider.user_id, _window(day=3))

        with pytest.raises(AvailabilityOverlapException):
            service.replace_weekly_pattern(
                provider.id,
                provider.user_id,
                WeeklyPattern(
                    entries=[
                        WeeklyPatternEntry(day_of_week=1, start_time=time(9, 0), end_time=time(12, 0)),
                        WeeklyPatternEntry(day_of_week=1, start_time=time(11, 0), end_time=time(14, 0)),
                    ]
                ),
            )

        assert [w.id for w in service.list_windows(provider.id)] == [original.id]

    def test_empty_pattern_clears_recurring_windows(self, service, provider):
        service.add_window(provider.id, provider.user_id, _window())

        assert service.replace_weekly_pattern(provider.id, provider.user_id, WeeklyPattern()) == []
        assert service.list_windows(provider.id) == []

    def test_only_owner_can_replace(self, service, provider, requester):
        with pytest.raises(ForbiddenException):
            service.replace_weekly_pattern(provider.id, requester.user_id, WeeklyPattern())


def test_list_windows_orders_by_day_then_start(service, provider, add_window):
    late = add_window(provider, 1, time(14, 0), time(15, 0))
    early = add_window(provider, 1, time(8, 0), time(9, 0))
    sunday = add_window(provider, 0, time(10, 0), time(11, 0))

    assert [w.id for w in service.list_windows(provider.id)] == [sunday.id, early.id, late.id]
