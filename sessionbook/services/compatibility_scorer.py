# sessionbook/services/compatibility_scorer.py
"""
Compatibility scoring between a provider and a requester.

Seven weighted factors, 400 points in total, folded into a 0-100 score.
Pure and deterministic: no I/O, no clock, same inputs give the same
result.
"""

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional

from ..core.constants import (
    BUDGET_WEIGHT,
    CATEGORY_WEIGHT,
    CONTEXT_WEIGHT,
    LANGUAGES_WEIGHT,
    LEVEL_WEIGHT,
    LOCALITY_WEIGHT,
    RECOMMENDED_MATCH_SCORE,
    REPUTATION_WEIGHT,
    TOTAL_COMPATIBILITY_WEIGHT,
)
from ..core.enums import CompatibilityCategory, CompatibilityLevel, LearnerCategory, ProficiencyLevel
from ..schemas.matching import CompatibilityFactor, CompatibilityResult, MatchPreferences

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compatibility_level(score: int) -> CompatibilityLevel:
    if score >= 80:
        return CompatibilityLevel.EXCELLENT
    if score >= 60:
        return CompatibilityLevel.HIGH
    if score >= 40:
        return CompatibilityLevel.MEDIUM
    if score >= 20:
        return CompatibilityLevel.LOW
    return CompatibilityLevel.POOR


def _dedupe(values) -> List[str]:
    return list(dict.fromkeys(value for value in (values or []) if value))


class CompatibilityScorer:
    """Scores one provider against one requester."""

    def score(
        self, provider, requester, preferences: Optional[MatchPreferences] = None
    ) -> CompatibilityResult:
        preferences = preferences or MatchPreferences()
        factors = [
            self.score_category(provider, requester),
            self.score_level(provider, requester),
            self.score_languages(provider, requester, preferences),
            self.score_context(provider, requester),
            self.score_budget(provider, preferences),
            self.score_locality(provider, requester, preferences),
            self.score_reputation(provider),
        ]
        total = sum(factor.score for factor in factors)
        final = round_half_up(total / TOTAL_COMPATIBILITY_WEIGHT * 100)
        return CompatibilityResult(
            provider_id=provider.id,
            requester_id=requester.id,
            score=final,
            level=compatibility_level(final),
            factors=factors,
            recommended=final >= RECOMMENDED_MATCH_SCORE,
        )

    @staticmethod
    def score_category(provider, requester) -> CompatibilityFactor:
        category = LearnerCategory(requester.learner_category)
        is_match = provider.serves_category(category)
        label = {
            LearnerCategory.CHILD: "children",
            LearnerCategory.TEENAGER: "teenagers",
            LearnerCategory.ADULT: "adults",
        }[category]
        return CompatibilityFactor(
            category=CompatibilityCategory.CATEGORY,
            weight=CATEGORY_WEIGHT,
            score=CATEGORY_WEIGHT if is_match else 0,
            reason=f"Provider works with {label}" if is_match else f"Provider does not work with {label}",
            is_match=is_match,
        )

    @staticmethod
    def score_level(provider, requester) -> CompatibilityFactor:
        level = ProficiencyLevel(requester.current_level)
        is_match = level in provider.accepted_level_set
        return CompatibilityFactor(
            category=CompatibilityCategory.LEVEL,
            weight=LEVEL_WEIGHT,
            score=LEVEL_WEIGHT if is_match else 0,
            reason=(
                f"Provider accepts {level.value} level requesters"
                if is_match
                else f"Provider does not accept {level.value} level requesters"
            ),
            is_match=is_match,
        )

    @staticmethod
    def score_languages(provider, requester, preferences: MatchPreferences) -> CompatibilityFactor:
        requested = _dedupe(preferences.preferred_languages) or _dedupe(requester.preferred_languages)
        spoken = set(provider.languages or [])
        common = [language for language in requested if language in spoken]
        score = round_half_up(LANGUAGES_WEIGHT * len(common) / len(requested)) if requested else 0
        return CompatibilityFactor(
            category=CompatibilityCategory.LANGUAGES,
            weight=LANGUAGES_WEIGHT,
            score=score,
            reason=(
                f"{len(common)} common language(s): {', '.join(common)}"
                if common
                else "No common languages"
            ),
            is_match=bool(common),
        )

    @staticmethod
    def score_context(provider, requester) -> CompatibilityFactor:
        score = CONTEXT_WEIGHT * 0.5
        reason = "Standard learning context"
        is_match = True

        if requester.needs_special_context:
            if provider.special_context_experience:
                score = CONTEXT_WEIGHT
                reason = "Provider is experienced with this learning context"
            else:
                score = CONTEXT_WEIGHT * 0.3
                reason = "Provider is not specifically experienced with this learning context"
                is_match = False

        if provider.beginner_friendly and ProficiencyLevel(requester.current_level) == ProficiencyLevel.NONE:
            score = min(score + 10, CONTEXT_WEIGHT)
            reason += "; provider is beginner-friendly"

        return CompatibilityFactor(
            category=CompatibilityCategory.CONTEXT,
            weight=CONTEXT_WEIGHT,
            score=round_half_up(score),
            reason=reason,
            is_match=is_match,
        )

    @staticmethod
    def score_budget(provider, preferences: MatchPreferences) -> CompatibilityFactor:
        if provider.free_sessions_only:
            return CompatibilityFactor(
                category=CompatibilityCategory.BUDGET,
                weight=BUDGET_WEIGHT,
                score=BUDGET_WEIGHT,
                reason="Provider offers free sessions only",
                is_match=True,
            )

        rate = float(provider.hourly_rate or 0)
        currency = provider.currency or ""
        budget = preferences.budget_per_session
        if budget is None:
            return CompatibilityFactor(
                category=CompatibilityCategory.BUDGET,
                weight=BUDGET_WEIGHT,
                score=round_half_up(BUDGET_WEIGHT * 0.5),
                reason=f"Provider charges {rate:g} {currency}/hour".strip(),
                is_match=True,
            )
        if rate <= budget:
            return CompatibilityFactor(
                category=CompatibilityCategory.BUDGET,
                weight=BUDGET_WEIGHT,
                score=BUDGET_WEIGHT,
                reason=f"Provider's rate ({rate:g} {currency}) is within budget",
                is_match=True,
            )
        return CompatibilityFactor(
            category=CompatibilityCategory.BUDGET,
            weight=BUDGET_WEIGHT,
            score=0,
            reason=f"Provider's rate ({rate:g} {currency}) exceeds budget ({budget:g})",
            is_match=False,
        )

    @staticmethod
    def score_locality(provider, requester, preferences: MatchPreferences) -> CompatibilityFactor:
        score = 0.0
        notes: List[str] = []

        provider_country = provider.country_code
        requester_country = preferences.country_code or requester.country_code
        if provider_country and requester_country and provider_country.upper() == requester_country.upper():
            score += LOCALITY_WEIGHT * 0.6
            notes.append("Same country")

        provider_tz = provider.timezone
        requester_tz = preferences.timezone or requester.timezone
        if provider_tz and requester_tz:
            if provider_tz == requester_tz:
                score += LOCALITY_WEIGHT * 0.4
                notes.append("Same timezone")
            else:
                score += LOCALITY_WEIGHT * 0.2
                notes.append("Different timezones")

        return CompatibilityFactor(
            category=CompatibilityCategory.LOCALITY,
            weight=LOCALITY_WEIGHT,
            score=round_half_up(min(score, LOCALITY_WEIGHT)),
            reason="; ".join(notes) if notes else "Location neutral",
            is_match=score > LOCALITY_WEIGHT * 0.3,
        )

    @staticmethod
    def score_reputation(provider) -> CompatibilityFactor:
        rating = float(provider.average_rating or 0)
        if rating >= 4.5:
            score, reason = REPUTATION_WEIGHT, f"Excellent rating ({rating:g}/5)"
        elif rating >= 4.0:
            score, reason = REPUTATION_WEIGHT * 0.8, f"Good rating ({rating:g}/5)"
        elif rating >= 3.5:
            score, reason = REPUTATION_WEIGHT * 0.5, f"Average rating ({rating:g}/5)"
        elif not provider.total_reviews:
            score, reason = REPUTATION_WEIGHT * 0.5, "New provider (no reviews yet)"
        else:
            score, reason = REPUTATION_WEIGHT * 0.2, f"Below average rating ({rating:g}/5)"

        return CompatibilityFactor(
            category=CompatibilityCategory.REPUTATION,
            weight=REPUTATION_WEIGHT,
            score=round_half_up(score),
            reason=reason,
            is_match=score >= REPUTATION_WEIGHT * 0.5,
        )
