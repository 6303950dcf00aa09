# sessionbook/services/session_service.py
"""
Session Service for SessionBook

Handles the lifecycle of booked sessions:
- Creating sessions (eligibility, duration and conflict guards)
- Starting, completing, cancelling and marking no-shows
- Rescheduling
- Participant listings

Every status change is a compare-and-set on the current status, so a
concurrent writer that already moved the session makes the guard fail
instead of being overwritten. Double-booking is ultimately prevented by
the storage-level overlap guard; an insert that loses that race is
reported as a booking conflict.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.constants import EARLY_START_MINUTES, PAST_SESSIONS_LIMIT, UPCOMING_SESSIONS_LIMIT
from ..core.enums import ParticipantRole, SessionStatus
from ..core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    NotFoundException,
    RepositoryException,
    ServiceException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc
from ..models.session import PROVIDER_OVERLAP_CONSTRAINT, BookedSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.session import (
    CancellationOutcome,
    SessionMetadata,
    SessionOutcome,
    SessionReschedule,
)
from .base import BaseService
from .cancellation_policy import cancelled_status_for, evaluate_cancellation, hours_until
from .collaborators import PaymentCollaborator, ProfileStore, SessionStore, StatsCollaborator
from .conflict_checker import ConflictDetector

logger = logging.getLogger(__name__)

GENERIC_CONFLICT_MESSAGE = "This time slot conflicts with an existing session"
STORAGE_CONFLICT_MESSAGE = "This time slot was just booked by someone else"
EARLY_START_MESSAGE = (
    f"Session can only be started within {EARLY_START_MINUTES} minutes of scheduled time"
)


class SessionService(BaseService):
    """
    Service layer for session lifecycle operations.

    Constructed per unit of work; collaborators default to the SQLAlchemy
    repositories bound to the same database session.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        conflict_detector: Optional[ConflictDetector] = None,
        profile_repository: Optional[ProfileStore] = None,
        session_repository: Optional[SessionStore] = None,
        stats: Optional[StatsCollaborator] = None,
        payment: Optional[PaymentCollaborator] = None,
    ):
        super().__init__(db, clock)
        self.profile_repository = profile_repository or RepositoryFactory.create_profile_repository(db)
        self.repository = session_repository or RepositoryFactory.create_session_repository(db)
        self.conflict_detector = conflict_detector or ConflictDetector(
            db,
            clock=self.clock,
            profile_repository=self.profile_repository,
            session_repository=self.repository,
        )
        self.stats = stats or RepositoryFactory.create_stats_repository(db)
        self.payment = payment

    # Helpers

    def _get_session_or_raise(self, session_id: str) -> BookedSession:
        session = self.repository.get_by_id(session_id)
        if session is None:
            raise NotFoundException(f"Session {session_id} not found", code="SESSION_NOT_FOUND")
        return session

    def _participant_role(self, session: BookedSession, actor_id: str) -> Optional[ParticipantRole]:
        provider = self.profile_repository.get_provider(session.provider_id)
        if provider is not None and provider.user_id == actor_id:
            return ParticipantRole.PROVIDER
        requester = self.profile_repository.get_requester(session.requester_id)
        if requester is not None and requester.user_id == actor_id:
            return ParticipantRole.REQUESTER
        return None

    def _require_provider(self, session: BookedSession, actor_id: str, action: str) -> None:
        if self._participant_role(session, actor_id) != ParticipantRole.PROVIDER:
            raise ForbiddenException(
                f"Only the provider can {action} this session", code="NOT_SESSION_PROVIDER"
            )

    def _require_participant(self, session: BookedSession, actor_id: str, action: str) -> ParticipantRole:
        role = self._participant_role(session, actor_id)
        if role is None:
            raise ForbiddenException(
                f"Only session participants can {action} this session",
                code="NOT_SESSION_PARTICIPANT",
            )
        return role

    @staticmethod
    def _require_status(session: BookedSession, allowed: Tuple[SessionStatus, ...], action: str) -> None:
        if session.status_enum not in allowed:
            raise ForbiddenException(
                f"Cannot {action} a session with status {session.status}",
                code="INVALID_SESSION_STATUS",
                details={"status": session.status},
            )

    def _validate_duration(self, provider, duration_minutes: int) -> None:
        if not provider.min_session_duration <= duration_minutes <= provider.max_session_duration:
            raise ValidationException(
                f"Duration must be between {provider.min_session_duration} and "
                f"{provider.max_session_duration} minutes",
                code="INVALID_DURATION",
                details={
                    "duration_minutes": duration_minutes,
                    "min": provider.min_session_duration,
                    "max": provider.max_session_duration,
                },
            )

    def _validate_future_start(self, start: datetime) -> None:
        if start <= self.now():
            raise ValidationException("Session start must be in the future", code="START_IN_PAST")

    def _apply_transition(
        self, session: BookedSession, allowed: Tuple[SessionStatus, ...], action: str, **fields
    ) -> BookedSession:
        """Compare-and-set the session out of ``allowed``; fail if someone moved it first."""
        moved = self.repository.transition(session.id, allowed, **fields)
        if not moved:
            current = self.repository.get_by_id(session.id)
            status_value = current.status if current is not None else "UNKNOWN"
            raise ForbiddenException(
                f"Cannot {action} a session with status {status_value}",
                code="INVALID_SESSION_STATUS",
                details={"status": status_value},
            )
        return self._get_session_or_raise(session.id)

    @staticmethod
    def _resolve_integrity_conflict(exc: IntegrityError) -> bool:
        """True when the IntegrityError came from the provider overlap guard."""
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = getattr(diag, "constraint_name", "") if diag is not None else ""
        if constraint_name == PROVIDER_OVERLAP_CONSTRAINT:
            return True
        return PROVIDER_OVERLAP_CONSTRAINT in str(orig if orig is not None else exc)

    def _raise_storage_conflict(self, exc: IntegrityError, details: dict) -> None:
        if self._resolve_integrity_conflict(exc):
            prometheus_metrics.record_booking_conflict("storage")
            self.logger.warning(
                f"Overlap guard rejected session write for provider {details.get('provider_id')}"
            )
            raise BookingConflictException(STORAGE_CONFLICT_MESSAGE, details=details) from exc
        raise ServiceException(f"Database operation failed: {str(exc)}") from exc

    # Lifecycle

    @BaseService.measure_operation("create_session")
    def create_session(
        self,
        requester_id: str,
        provider_id: str,
        start: datetime,
        duration_minutes: int,
        metadata: Optional[SessionMetadata] = None,
    ) -> BookedSession:
        """
        Book a session for ``requester_id`` with ``provider_id``.

        Raises:
            NotFoundException: Requester or provider missing
            ForbiddenException: Provider not approved or not accepting bookings
            ValidationException: Duration out of bounds or start not in the future
            BookingConflictException: Slot taken, outside availability, or lost a race
        """
        metadata = metadata or SessionMetadata()
        start = ensure_utc(start)
        self.log_operation(
            "create_session",
            requester_id=requester_id,
            provider_id=provider_id,
            start=start.isoformat(),
            duration_minutes=duration_minutes,
        )

        requester = self.profile_repository.get_requester(requester_id)
        if requester is None:
            raise NotFoundException(f"Requester {requester_id} not found", code="REQUESTER_NOT_FOUND")
        provider = self.profile_repository.get_provider(provider_id)
        if provider is None:
            raise NotFoundException(f"Provider {provider_id} not found", code="PROVIDER_NOT_FOUND")
        if not provider.is_bookable:
            raise ForbiddenException(
                "Provider is not accepting bookings", code="PROVIDER_NOT_BOOKABLE"
            )

        self._validate_duration(provider, duration_minutes)
        self._validate_future_start(start)

        check = self.conflict_detector.check_availability(provider_id, start, duration_minutes)
        details = {
            "provider_id": provider_id,
            "requester_id": requester_id,
            "start": start.isoformat(),
            "duration_minutes": duration_minutes,
        }
        if not check.available:
            prometheus_metrics.record_booking_conflict("precheck")
            if check.conflicting_session_id:
                details["conflicting_session_id"] = check.conflicting_session_id
            raise BookingConflictException(check.reason, details=details)

        try:
            with self.repository.transaction():
                session = self.repository.create(
                    provider_id=provider_id,
                    requester_id=requester_id,
                    scheduled_start=start,
                    scheduled_end=start + timedelta(minutes=duration_minutes),
                    duration_minutes=duration_minutes,
                    timezone=metadata.timezone or provider.timezone or "UTC",
                    status=SessionStatus.SCHEDULED.value,
                    lesson_plan=metadata.lesson_plan,
                    requester_notes=metadata.requester_notes,
                    topics=list(metadata.topics),
                )
                self.stats.record_session_booked(provider_id, requester_id)
        except IntegrityError as exc:
            self._raise_storage_conflict(exc, details)
        except RepositoryException as exc:
            raise ServiceException(str(exc)) from exc

        self.logger.info(f"Created session {session.id} for provider {provider_id}")
        return session

    @BaseService.measure_operation("start_session")
    def start_session(self, session_id: str, actor_id: str) -> BookedSession:
        session = self._get_session_or_raise(session_id)
        self._require_provider(session, actor_id, "start")
        self._require_status(session, (SessionStatus.SCHEDULED,), "start")

        now = self.now()
        if now < session.scheduled_start - timedelta(minutes=EARLY_START_MINUTES):
            raise ForbiddenException(
                EARLY_START_MESSAGE,
                code="START_TOO_EARLY",
                details={"scheduled_start": session.scheduled_start.isoformat()},
            )

        self.log_operation("start_session", session_id=session_id)
        with self.transaction():
            session = self._apply_transition(
                session,
                (SessionStatus.SCHEDULED,),
                "start",
                status=SessionStatus.IN_PROGRESS,
                started_at=now,
            )
        return session

    @BaseService.measure_operation("complete_session")
    def complete_session(
        self, session_id: str, actor_id: str, outcome: Optional[SessionOutcome] = None
    ) -> BookedSession:
        outcome = outcome or SessionOutcome()
        session = self._get_session_or_raise(session_id)
        self._require_provider(session, actor_id, "complete")
        allowed = SessionStatus.active()
        self._require_status(session, allowed, "complete")

        fields = {"status": SessionStatus.COMPLETED, "completed_at": self.now()}
        if outcome.provider_notes is not None:
            fields["provider_notes"] = outcome.provider_notes
        if outcome.topics_covered:
            fields["topics"] = list(outcome.topics_covered)

        self.log_operation("complete_session", session_id=session_id)
        with self.transaction():
            session = self._apply_transition(session, allowed, "complete", **fields)
            self.stats.record_session_completed(
                session.provider_id, session.requester_id, session.duration_minutes
            )
        return session

    @BaseService.measure_operation("cancel_session")
    def cancel_session(self, session_id: str, actor_id: str, reason: str) -> CancellationOutcome:
        """
        Cancel a scheduled session and work out the refund tier.

        The refund is handed to the payment collaborator only after the
        cancellation has committed.
        """
        session = self._get_session_or_raise(session_id)
        role = self._require_participant(session, actor_id, "cancel")
        self._require_status(session, (SessionStatus.SCHEDULED,), "cancel")

        cleaned = (reason or "").strip()
        if len(cleaned) < max(settings.cancellation_reason_min_length, 1):
            raise ValidationException(
                "A cancellation reason is required", code="CANCELLATION_REASON_REQUIRED"
            )

        now = self.now()
        decision = evaluate_cancellation(hours_until(session.scheduled_start, now))
        status = cancelled_status_for(role)

        self.log_operation(
            "cancel_session",
            session_id=session_id,
            role=role.value,
            refund_percentage=decision.refund_percentage,
        )
        with self.transaction():
            session = self._apply_transition(
                session,
                (SessionStatus.SCHEDULED,),
                "cancel",
                status=status,
                cancelled_at=now,
                cancelled_by=actor_id,
                cancellation_reason=cleaned,
            )

        prometheus_metrics.record_cancellation(role.value, decision.refund_percentage)
        if self.payment is not None:
            self.payment.issue_refund(session.id, decision.refund_percentage)

        return CancellationOutcome(
            session_id=session.id,
            status=status,
            refund_percentage=decision.refund_percentage,
            message=decision.message,
            cancelled_at=now,
            cancelled_by=actor_id,
            reason=cleaned,
        )

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, session_id: str, absent_party: ParticipantRole) -> BookedSession:
        """Record that one participant never showed up. Triggered externally."""
        session = self._get_session_or_raise(session_id)
        allowed = SessionStatus.active()
        self._require_status(session, allowed, "mark no-show on")

        status = (
            SessionStatus.NO_SHOW_PROVIDER
            if absent_party == ParticipantRole.PROVIDER
            else SessionStatus.NO_SHOW_REQUESTER
        )
        self.log_operation("mark_no_show", session_id=session_id, status=status.value)
        with self.transaction():
            session = self._apply_transition(session, allowed, "mark no-show on", status=status)
        return session

    @BaseService.measure_operation("reschedule_session")
    def reschedule_session(
        self, session_id: str, actor_id: str, data: SessionReschedule
    ) -> BookedSession:
        session = self._get_session_or_raise(session_id)
        self._require_participant(session, actor_id, "reschedule")
        self._require_status(session, (SessionStatus.SCHEDULED,), "reschedule")

        provider = self.profile_repository.get_provider(session.provider_id)
        if provider is None:
            raise NotFoundException(
                f"Provider {session.provider_id} not found", code="PROVIDER_NOT_FOUND"
            )

        start = ensure_utc(data.scheduled_start)
        duration = data.duration_minutes or session.duration_minutes
        self._validate_duration(provider, duration)
        self._validate_future_start(start)

        details = {
            "provider_id": session.provider_id,
            "session_id": session.id,
            "start": start.isoformat(),
            "duration_minutes": duration,
        }
        check = self.conflict_detector.check_availability(
            session.provider_id, start, duration, exclude_session_id=session.id
        )
        if not check.available:
            prometheus_metrics.record_booking_conflict("precheck")
            if check.conflicting_session_id:
                details["conflicting_session_id"] = check.conflicting_session_id
            raise BookingConflictException(check.reason, details=details)

        fields = {
            "scheduled_start": start,
            "scheduled_end": start + timedelta(minutes=duration),
            "duration_minutes": duration,
        }
        for name in ("lesson_plan", "requester_notes", "provider_notes"):
            value = getattr(data, name)
            if value is not None:
                fields[name] = value

        self.log_operation("reschedule_session", session_id=session_id, start=start.isoformat())
        try:
            with self.repository.transaction():
                session = self._apply_transition(
                    session, (SessionStatus.SCHEDULED,), "reschedule", **fields
                )
        except IntegrityError as exc:
            self._raise_storage_conflict(exc, details)
        return session

    # Listings

    @BaseService.measure_operation("get_upcoming_sessions")
    def get_upcoming_sessions(self, user_id: str) -> List[BookedSession]:
        profile_ids = self.repository.get_profile_ids_for_user(user_id)
        return self.repository.get_upcoming_for_profiles(
            profile_ids, self.now(), UPCOMING_SESSIONS_LIMIT
        )

    @BaseService.measure_operation("get_past_sessions")
    def get_past_sessions(self, user_id: str, limit: int = PAST_SESSIONS_LIMIT) -> List[BookedSession]:
        if limit <= 0:
            raise ValidationException("limit must be positive", code="INVALID_LIMIT")
        profile_ids = self.repository.get_profile_ids_for_user(user_id)
        return self.repository.get_past_for_profiles(profile_ids, limit)
