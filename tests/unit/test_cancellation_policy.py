"""Tests for the refund tier evaluation."""

from datetime import datetime, timedelta, timezone

import pytest

from sessionbook.core.enums import ParticipantRole, SessionStatus
from sessionbook.services.cancellation_policy import (
    cancelled_status_for,
    evaluate_cancellation,
    hours_until,
)


class TestEvaluateCancellation:
    @pytest.mark.parametrize(
        "hours, expected",
        [
            (72.0, 100),
            (24.0, 100),
            (23.999, 50),
            (12.0, 50),
            (2.0, 50),
            (1.999, 0),
            (0.0, 0),
            (-3.0, 0),
        ],
    )
    def test_tier_boundaries(self, hours, expected):
        assert evaluate_cancellation(hours).refund_percentage == expected

    def test_messages_name_the_tier(self):
        assert evaluate_cancellation(30).message == "Full refund issued (cancelled > 24h before session)"
        assert (
            evaluate_cancellation(5).message
            == "Partial refund (50%) issued (cancelled < 24h before session)"
        )
        assert evaluate_cancellation(1).message == "No refund (cancelled < 2h before session)"


class TestHoursUntil:
    def test_fractional_hours(self):
        now = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
        assert hours_until(now + timedelta(hours=1, minutes=30), now) == pytest.approx(1.5)

    def test_naive_start_is_treated_as_utc(self):
        now = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
        assert hours_until(datetime(2026, 3, 3, 8, 0), now) == pytest.approx(24.0)

    def test_negative_once_started(self):
        now = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
        assert hours_until(now - timedelta(minutes=30), now) < 0


def test_cancelled_status_follows_actor_role():
    assert cancelled_status_for(ParticipantRole.PROVIDER) == SessionStatus.CANCELLED_BY_PROVIDER
    assert cancelled_status_for(ParticipantRole.REQUESTER) == SessionStatus.CANCELLED_BY_REQUESTER
