"""
Tests for CompatibilityScorer.

Profiles are transient ORM objects; scoring never touches a database.
"""

import pytest

from sessionbook.core.enums import CompatibilityCategory, CompatibilityLevel, LearnerCategory
from sessionbook.schemas.matching import MatchPreferences
from sessionbook.services.compatibility_scorer import (
    CompatibilityScorer,
    compatibility_level,
    round_half_up,
)

from ..factories import build_provider, build_requester


def _factor(result, category):
    return next(factor for factor in result.factors if factor.category == category)


@pytest.fixture
def scorer():
    return CompatibilityScorer()


class TestScenarios:
    def test_adults_only_provider_scores_zero_category_for_child(self, scorer):
        provider = build_provider(serves_adults=True, serves_children=False)
        requester = build_requester(learner_category=LearnerCategory.CHILD.value)

        result = scorer.score(provider, requester)

        category = _factor(result, CompatibilityCategory.CATEGORY)
        assert category.score == 0
        assert category.is_match is False
        assert result.score <= 75

    def test_language_overlap_gives_full_weight(self, scorer):
        provider = build_provider(languages=["ar", "fr", "en"])
        requester = build_requester(preferred_languages=["en"])

        result = scorer.score(provider, requester, MatchPreferences(preferred_languages=["fr", "ar"]))

        languages = _factor(result, CompatibilityCategory.LANGUAGES)
        assert languages.score == 80
        assert languages.is_match is True

    def test_partial_language_overlap_rounds_half_up(self, scorer):
        provider = build_provider(languages=["en"])
        requester = build_requester(preferred_languages=["en", "fr", "de"])

        result = scorer.score(provider, requester)

        # 80 * 1/3 = 26.67
        assert _factor(result, CompatibilityCategory.LANGUAGES).score == 27

    def test_no_requested_languages_scores_zero(self, scorer):
        result = scorer.score(build_provider(), build_requester(preferred_languages=[]))
        languages = _factor(result, CompatibilityCategory.LANGUAGES)
        assert languages.score == 0
        assert languages.is_match is False

    def test_perfect_match(self, scorer):
        provider = build_provider(
            serves_children=True,
            languages=["ar"],
            special_context_experience=True,
            free_sessions_only=True,
            average_rating=4.9,
            total_reviews=12,
            country_code="EG",
            timezone="Africa/Cairo",
        )
        requester = build_requester(
            learner_category=LearnerCategory.CHILD.value,
            preferred_languages=["ar"],
            needs_special_context=True,
            country_code="EG",
            timezone="Africa/Cairo",
        )

        result = scorer.score(provider, requester)

        assert result.score == 100
        assert result.level == CompatibilityLevel.EXCELLENT
        assert result.recommended is True
        assert len(result.match_reasons) == 5


class TestFactors:
    def test_context_needed_but_missing(self, scorer):
        result = scorer.score(
            build_provider(special_context_experience=False),
            build_requester(needs_special_context=True),
        )
        context = _factor(result, CompatibilityCategory.CONTEXT)
        assert context.score == 15
        assert context.is_match is False

    def test_beginner_friendly_bonus_for_lowest_level(self, scorer):
        result = scorer.score(
            build_provider(beginner_friendly=True),
            build_requester(current_level="NONE"),
        )
        assert _factor(result, CompatibilityCategory.CONTEXT).score == 35

    def test_beginner_bonus_capped_at_weight(self, scorer):
        result = scorer.score(
            build_provider(beginner_friendly=True, special_context_experience=True),
            build_requester(current_level="NONE", needs_special_context=True),
        )
        assert _factor(result, CompatibilityCategory.CONTEXT).score == 50

    @pytest.mark.parametrize(
        "provider_kwargs, budget, expected_score, expected_match",
        [
            ({"free_sessions_only": True, "hourly_rate": None}, 5.0, 40, True),
            ({"hourly_rate": 30.0}, None, 20, True),
            ({"hourly_rate": 30.0}, 30.0, 40, True),
            ({"hourly_rate": 30.0}, 20.0, 0, False),
        ],
    )
    def test_budget(self, scorer, provider_kwargs, budget, expected_score, expected_match):
        result = scorer.score(
            build_provider(**provider_kwargs),
            build_requester(),
            MatchPreferences(budget_per_session=budget),
        )
        budget_factor = _factor(result, CompatibilityCategory.BUDGET)
        assert budget_factor.score == expected_score
        assert budget_factor.is_match is expected_match

    def test_locality_preferences_override_requester(self, scorer):
        provider = build_provider(country_code="FR", timezone="Europe/Paris")
        requester = build_requester(country_code="US", timezone="America/New_York")

        result = scorer.score(
            provider,
            requester,
            MatchPreferences(country_code="fr", timezone="Europe/Paris"),
        )

        locality = _factor(result, CompatibilityCategory.LOCALITY)
        assert locality.score == 30
        assert locality.is_match is True

    def test_locality_different_timezones_only(self, scorer):
        result = scorer.score(
            build_provider(timezone="Europe/Paris"),
            build_requester(timezone="Asia/Tokyo"),
        )
        locality = _factor(result, CompatibilityCategory.LOCALITY)
        assert locality.score == 6
        assert locality.is_match is False

    def test_locality_missing_countries_do_not_match(self, scorer):
        result = scorer.score(build_provider(country_code=None), build_requester(country_code=None))
        assert _factor(result, CompatibilityCategory.LOCALITY).score == 0

    @pytest.mark.parametrize(
        "rating, reviews, expected",
        [(4.5, 10, 20), (4.0, 10, 16), (3.5, 10, 10), (0.0, 0, 10), (2.0, 3, 4)],
    )
    def test_reputation(self, scorer, rating, reviews, expected):
        result = scorer.score(
            build_provider(average_rating=rating, total_reviews=reviews), build_requester()
        )
        reputation = _factor(result, CompatibilityCategory.REPUTATION)
        assert reputation.score == expected
        assert reputation.is_match is (expected >= 10)


class TestProperties:
    def test_deterministic(self, scorer):
        provider = build_provider(languages=["en", "es"], average_rating=4.2, total_reviews=3)
        requester = build_requester(preferred_languages=["es"])
        assert scorer.score(provider, requester) == scorer.score(provider, requester)

    def test_bounded(self, scorer):
        for provider_kwargs in (
            {},
            {"serves_adults": False, "accepted_levels": [], "languages": []},
            {"free_sessions_only": True, "average_rating": 5.0, "total_reviews": 1},
        ):
            result = scorer.score(build_provider(**provider_kwargs), build_requester())
            assert 0 <= result.score <= 100
            for factor in result.factors:
                assert 0 <= factor.score <= factor.weight


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(62.5) == 63
    assert round_half_up(26.4) == 26


@pytest.mark.parametrize(
    "score, level",
    [
        (100, CompatibilityLevel.EXCELLENT),
        (80, CompatibilityLevel.EXCELLENT),
        (79, CompatibilityLevel.HIGH),
        (60, CompatibilityLevel.HIGH),
        (40, CompatibilityLevel.MEDIUM),
        (20, CompatibilityLevel.LOW),
        (19, CompatibilityLevel.POOR),
    ],
)
def test_compatibility_level(score, level):
    assert compatibility_level(score) == level
