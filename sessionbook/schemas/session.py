# sessionbook/schemas/session.py
"""
Session schemas for SessionBook.

Request models carry only what the caller controls; ids of the
participants and the start/duration travel as explicit arguments to the
service so the guards can name exactly which input was rejected.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import SessionStatus
from ._strict_base import StrictModel, StrictRequestModel


class SessionMetadata(StrictRequestModel):
    """Optional details a requester attaches when booking."""

    timezone: Optional[str] = Field(None, max_length=64, description="Defaults to the provider's")
    lesson_plan: Optional[str] = Field(None, max_length=2000)
    topics: List[str] = Field(default_factory=list)
    requester_notes: Optional[str] = Field(None, max_length=1000)


class SessionOutcome(StrictRequestModel):
    """What the provider records when completing a session."""

    provider_notes: Optional[str] = Field(None, max_length=2000)
    topics_covered: List[str] = Field(default_factory=list)


class SessionReschedule(StrictRequestModel):
    scheduled_start: datetime
    duration_minutes: Optional[int] = Field(None, gt=0)
    lesson_plan: Optional[str] = Field(None, max_length=2000)
    requester_notes: Optional[str] = Field(None, max_length=1000)
    provider_notes: Optional[str] = Field(None, max_length=2000)


class CancellationOutcome(StrictModel):
    """Result of a cancellation; computed, never stored on its own."""

    session_id: str
    status: SessionStatus
    refund_percentage: int = Field(..., ge=0, le=100)
    message: str
    cancelled_at: datetime
    cancelled_by: str
    reason: str
