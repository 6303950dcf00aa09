# sessionbook/services/collaborators.py
"""
Collaborator contracts consumed by the services.

The SQLAlchemy repositories satisfy the store protocols; payment and
stats are pluggable so a host application can route refunds to its own
payment provider.
"""

from datetime import date, datetime
from typing import Any, ContextManager, Iterable, List, Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from ..schemas.matching import MatchFilterCriteria


class PaymentCollaborator(Protocol):
    def issue_refund(self, session_id: str, refund_percentage: int) -> None:
        """Refund ``refund_percentage`` percent of what was charged for the session."""
        ...


class StatsCollaborator(Protocol):
    def record_session_booked(self, provider_id: str, requester_id: str) -> None:
        ...

    def record_session_completed(
        self, provider_id: str, requester_id: str, duration_minutes: int
    ) -> None:
        ...


class ProfileStore(Protocol):
    def get_provider(self, provider_id: str) -> Optional[Any]:
        ...

    def get_requester(self, requester_id: str) -> Optional[Any]:
        ...

    def get_providers_by_ids(self, provider_ids: Iterable[str]) -> List[Any]:
        ...

    def get_eligible_providers(self, criteria: Optional[MatchFilterCriteria] = None) -> List[Any]:
        ...


class SessionStore(Protocol):
    def transaction(self) -> ContextManager[Any]:
        """Unit of work that commits on exit and re-raises storage errors unchanged."""
        ...

    def get_by_id(self, id: str) -> Optional[Any]:
        ...

    def create(self, **kwargs: Any) -> Any:
        ...

    def get_overlapping_active_sessions(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> List[Any]:
        ...

    def transition(
        self, session_id: str, from_statuses: Iterable[SessionStatus], **fields: Any
    ) -> bool:
        ...

    def get_upcoming_for_profiles(
        self, profile_ids: Sequence[str], now: datetime, limit: int
    ) -> List[Any]:
        ...

    def get_past_for_profiles(self, profile_ids: Sequence[str], limit: int) -> List[Any]:
        ...

    def get_profile_ids_for_user(self, user_id: str) -> List[str]:
        ...


class AvailabilityStore(Protocol):
    def get_by_id(self, id: str) -> Optional[Any]:
        ...

    def get_windows_for_provider(self, provider_id: str) -> List[Any]:
        ...

    def get_windows_for_day(
        self,
        provider_id: str,
        day_of_week: int,
        on_date: Optional[date] = None,
        enabled_only: bool = True,
    ) -> List[Any]:
        ...
