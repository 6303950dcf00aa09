# sessionbook/schemas/availability.py
"""
Availability schemas for SessionBook.

Window times are wall-clock times in the provider's timezone. Check and
slot results carry absolute UTC instants alongside the local view.
"""

import datetime
from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from ._strict_base import StrictModel, StrictRequestModel

DateType = datetime.date
TimeType = datetime.time
DateTimeType = datetime.datetime


def _check_time_order(start: Optional[TimeType], end: Optional[TimeType]) -> None:
    if start is not None and end is not None and end <= start:
        raise ValueError("Start time must be before end time")


class AvailabilityWindowCreate(StrictRequestModel):
    """Schema for adding one availability window."""

    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    start_time: TimeType
    end_time: TimeType
    is_recurring: bool = True
    specific_date: Optional[DateType] = None
    is_enabled: bool = True

    @model_validator(mode="after")
    def _validate(self) -> "AvailabilityWindowCreate":
        _check_time_order(self.start_time, self.end_time)
        if self.specific_date is not None and (self.specific_date.weekday() + 1) % 7 != self.day_of_week:
            raise ValueError("specific_date does not fall on day_of_week")
        return self


class AvailabilityWindowUpdate(StrictRequestModel):
    """Partial update; omitted fields keep their value."""

    start_time: Optional[TimeType] = None
    end_time: Optional[TimeType] = None
    is_recurring: Optional[bool] = None
    specific_date: Optional[DateType] = None
    is_enabled: Optional[bool] = None

    @model_validator(mode="after")
    def _validate(self) -> "AvailabilityWindowUpdate":
        _check_time_order(self.start_time, self.end_time)
        return self


class WeeklyPatternEntry(StrictRequestModel):
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: TimeType
    end_time: TimeType


class WeeklyPattern(StrictRequestModel):
    """Replaces every recurring window of a provider."""

    entries: List[WeeklyPatternEntry] = Field(default_factory=list)


class AvailabilityCheckResult(StrictModel):
    available: bool
    reason: str
    conflicting_session_id: Optional[str] = None


class ConflictCheckResult(StrictModel):
    has_conflict: bool
    conflicting_session_ids: List[str] = Field(default_factory=list)


class AvailableSlot(StrictModel):
    """A bookable start/end pair; ``start``/``end`` are UTC."""

    start: DateTimeType
    end: DateTimeType
    local_date: DateType
    local_start_time: TimeType
    local_end_time: TimeType
    duration_minutes: int

    @field_validator("start", "end")
    @classmethod
    def _require_aware(cls, value: DateTimeType, info: Any) -> DateTimeType:
        if value.tzinfo is None:
            raise ValueError(f"{info.field_name} must be timezone-aware")
        return value
