# sessionbook/services/match_ranker.py
"""
Match Ranker Service for SessionBook

Ranks providers for a requester:
- Fetches the eligible pool with the hard pre-filters applied in the query
- Scores every candidate with CompatibilityScorer
- Drops weak matches, sorts by score and truncates to the requested limit
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.constants import MIN_MATCH_SCORE
from ..core.exceptions import NotFoundException
from ..repositories.factory import RepositoryFactory
from ..schemas.matching import CompatibilityResult, MatchPreferences, RankedMatch
from .base import BaseService
from .collaborators import ProfileStore
from .compatibility_scorer import CompatibilityScorer

logger = logging.getLogger(__name__)


class MatchRanker(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        profile_repository: Optional[ProfileStore] = None,
        scorer: Optional[CompatibilityScorer] = None,
    ):
        super().__init__(db, clock)
        self.profile_repository = profile_repository or RepositoryFactory.create_profile_repository(db)
        self.scorer = scorer or CompatibilityScorer()

    def _get_requester_or_raise(self, requester_id: str):
        requester = self.profile_repository.get_requester(requester_id)
        if requester is None:
            raise NotFoundException(f"Requester {requester_id} not found", code="REQUESTER_NOT_FOUND")
        return requester

    @BaseService.measure_operation("score_compatibility")
    def score_compatibility(
        self,
        provider_id: str,
        requester_id: str,
        preferences: Optional[MatchPreferences] = None,
    ) -> CompatibilityResult:
        provider = self.profile_repository.get_provider(provider_id)
        if provider is None:
            raise NotFoundException(f"Provider {provider_id} not found", code="PROVIDER_NOT_FOUND")
        requester = self._get_requester_or_raise(requester_id)
        return self.scorer.score(provider, requester, preferences)

    @BaseService.measure_operation("rank_matches")
    def rank(
        self, requester_id: str, preferences: Optional[MatchPreferences] = None
    ) -> List[RankedMatch]:
        """
        Best providers for the requester, highest score first.

        Matches scoring below the floor are discarded. Ties keep pool order,
        which is by provider id.
        """
        preferences = preferences or MatchPreferences(limit=settings.match_default_limit)
        requester = self._get_requester_or_raise(requester_id)

        pool = self.profile_repository.get_eligible_providers(preferences.to_filter_criteria())
        matches = []
        for provider in pool:
            result = self.scorer.score(provider, requester, preferences)
            if result.score >= MIN_MATCH_SCORE:
                matches.append(RankedMatch(provider=provider, result=result))

        matches.sort(key=lambda match: match.score, reverse=True)
        limit = min(preferences.limit, settings.match_max_limit)

        self.log_operation(
            "rank_matches",
            requester_id=requester_id,
            pool_size=len(pool),
            matched=len(matches),
            limit=limit,
        )
        return matches[:limit]

    @BaseService.measure_operation("rank_specific")
    def rank_specific(
        self,
        requester_id: str,
        candidate_ids: Iterable[str],
        preferences: Optional[MatchPreferences] = None,
    ) -> List[RankedMatch]:
        """Score only the named providers; no eligibility filter and no floor."""
        requester = self._get_requester_or_raise(requester_id)
        candidates = self.profile_repository.get_providers_by_ids(candidate_ids)
        matches = [
            RankedMatch(provider=provider, result=self.scorer.score(provider, requester, preferences))
            for provider in candidates
        ]
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches
