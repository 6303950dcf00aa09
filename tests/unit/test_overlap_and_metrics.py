"""Tests for the interval predicate and service instrumentation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import Session

from sessionbook.core.exceptions import NotFoundException
from sessionbook.monitoring.prometheus_metrics import prometheus_metrics
from sessionbook.services.base import BaseService
from sessionbook.services.conflict_checker import overlaps

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _span(start_minutes, end_minutes):
    return T0 + timedelta(minutes=start_minutes), T0 + timedelta(minutes=end_minutes)


class TestOverlaps:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((0, 60), (30, 90), True),
            ((0, 60), (60, 120), False),  # touching
            ((0, 120), (30, 60), True),  # containment
            ((0, 60), (0, 60), True),
            ((0, 30), (45, 60), False),
        ],
    )
    def test_half_open_rule_is_symmetric(self, a, b, expected):
        a_start, a_end = _span(*a)
        b_start, b_end = _span(*b)
        assert overlaps(a_start, a_end, b_start, b_end) is expected
        assert overlaps(b_start, b_end, a_start, a_end) is expected


class _ProbeService(BaseService):
    @BaseService.measure_operation("probe")
    def probe(self, fail=False):
        if fail:
            raise NotFoundException("missing")
        return "ok"


class TestMeasureOperation:
    def test_records_success_and_failure(self):
        service = _ProbeService(Mock(spec=Session))

        assert service.probe() == "ok"
        with pytest.raises(NotFoundException):
            service.probe(fail=True)

        summary = service.get_metrics()["probe"]
        assert summary["count"] >= 2
        assert 0 < summary["success_rate"] < 1

    def test_prometheus_exposition(self):
        _ProbeService(Mock(spec=Session)).probe()
        payload = prometheus_metrics.get_metrics().decode()
        assert "sessionbook_service_operations_total" in payload
        assert 'operation="probe"' in payload

    def test_transaction_rolls_back_on_error(self):
        db = Mock(spec=Session)
        service = _ProbeService(db)

        with pytest.raises(ValueError):
            with service.transaction():
                raise ValueError("boom")

        db.rollback.assert_called_once()
        db.commit.assert_not_called()
