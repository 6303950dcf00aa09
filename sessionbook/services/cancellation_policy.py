"""Refund tier evaluation for session cancellations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.constants import (
    FULL_REFUND_HOURS,
    FULL_REFUND_PERCENTAGE,
    NO_REFUND_PERCENTAGE,
    PARTIAL_REFUND_HOURS,
    PARTIAL_REFUND_PERCENTAGE,
)
from ..core.enums import ParticipantRole, SessionStatus
from ..core.timezone_utils import ensure_utc


@dataclass(frozen=True)
class RefundDecision:
    refund_percentage: int
    message: str


def hours_until(start: datetime, now: datetime) -> float:
    """Fractional hours from ``now`` to ``start``; negative once started."""
    return (ensure_utc(start) - ensure_utc(now)).total_seconds() / 3600


def evaluate_cancellation(hours_until_start: float) -> RefundDecision:
    """
    Map time-to-start onto a refund tier.

    Exactly 24h and exactly 2h fall into the higher tier.
    """
    if hours_until_start >= FULL_REFUND_HOURS:
        return RefundDecision(
            refund_percentage=FULL_REFUND_PERCENTAGE,
            message=f"Full refund issued (cancelled > {FULL_REFUND_HOURS}h before session)",
        )
    if hours_until_start >= PARTIAL_REFUND_HOURS:
        return RefundDecision(
            refund_percentage=PARTIAL_REFUND_PERCENTAGE,
            message=(
                f"Partial refund ({PARTIAL_REFUND_PERCENTAGE}%) issued "
                f"(cancelled < {FULL_REFUND_HOURS}h before session)"
            ),
        )
    return RefundDecision(
        refund_percentage=NO_REFUND_PERCENTAGE,
        message=f"No refund (cancelled < {PARTIAL_REFUND_HOURS}h before session)",
    )


def cancelled_status_for(role: ParticipantRole) -> SessionStatus:
    if role == ParticipantRole.PROVIDER:
        return SessionStatus.CANCELLED_BY_PROVIDER
    return SessionStatus.CANCELLED_BY_REQUESTER
