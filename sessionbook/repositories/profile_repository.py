# sessionbook/repositories/profile_repository.py
"""
Profile repository: the ProfileStore collaborator.

Read access to providers and requesters plus the eligible-pool query the
matcher ranks. Hard filters arrive as a closed ``MatchFilterCriteria``
value, never as an ad-hoc dict.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import VerificationStatus
from ..core.exceptions import RepositoryException
from ..models.profile import ProviderProfile, RequesterProfile
from ..schemas.matching import MatchFilterCriteria
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProfileRepository(BaseRepository[ProviderProfile]):
    def __init__(self, db: Session):
        super().__init__(db, ProviderProfile)

    def get_provider(self, provider_id: str) -> Optional[ProviderProfile]:
        return self.get_by_id(provider_id)

    def get_requester(self, requester_id: str) -> Optional[RequesterProfile]:
        try:
            return self.db.get(RequesterProfile, requester_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting requester {requester_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve requester: {str(e)}")

    def get_providers_by_ids(self, provider_ids: Iterable[str]) -> List[ProviderProfile]:
        ids = list(dict.fromkeys(provider_ids))
        if not ids:
            return []
        try:
            return (
                self.db.query(ProviderProfile)
                .filter(ProviderProfile.id.in_(ids))
                .order_by(ProviderProfile.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting providers by ids: {str(e)}")
            raise RepositoryException(f"Failed to retrieve providers: {str(e)}")

    def get_eligible_providers(
        self, criteria: Optional[MatchFilterCriteria] = None
    ) -> List[ProviderProfile]:
        """
        Approved, active providers currently accepting bookings.

        Ordered by id so ties in the ranking resolve the same way on every
        call.
        """
        criteria = criteria or MatchFilterCriteria()
        try:
            query = self.db.query(ProviderProfile).filter(
                ProviderProfile.verification_status == VerificationStatus.APPROVED.value,
                ProviderProfile.is_active.is_(True),
                ProviderProfile.is_accepting_bookings.is_(True),
            )
            if criteria.free_sessions_only:
                query = query.filter(ProviderProfile.free_sessions_only.is_(True))
            if criteria.require_free_trial:
                query = query.filter(ProviderProfile.free_trial_available.is_(True))
            if criteria.min_rating is not None:
                query = query.filter(ProviderProfile.average_rating >= criteria.min_rating)
            if criteria.max_budget is not None:
                query = query.filter(
                    or_(
                        ProviderProfile.hourly_rate <= criteria.max_budget,
                        ProviderProfile.free_sessions_only.is_(True),
                    )
                )
            return query.order_by(ProviderProfile.id).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting eligible providers: {str(e)}")
            raise RepositoryException(f"Failed to retrieve eligible providers: {str(e)}")
