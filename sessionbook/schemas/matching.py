# sessionbook/schemas/matching.py
"""
Matching schemas.

``MatchPreferences`` is the validated request; ``MatchFilterCriteria`` is
the closed set of hard filters derived from it and handed to the profile
repository. Scores and factors are plain frozen dataclasses because they
are computed in a hot loop and never cross a trust boundary.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import Field, field_validator

from ..core.constants import DEFAULT_MATCH_LIMIT, MAX_MATCH_LIMIT
from ..core.enums import CompatibilityCategory, CompatibilityLevel
from ._strict_base import StrictRequestModel


class MatchPreferences(StrictRequestModel):
    preferred_languages: List[str] = Field(default_factory=list, description="ISO 639-1 codes")
    budget_per_session: Optional[float] = Field(None, ge=0)
    free_sessions_only: bool = False
    require_free_trial: bool = False
    min_rating: Optional[float] = Field(None, ge=0, le=5)
    timezone: Optional[str] = Field(None, max_length=64)
    country_code: Optional[str] = Field(None, min_length=2, max_length=2)
    limit: int = Field(DEFAULT_MATCH_LIMIT, ge=1, le=MAX_MATCH_LIMIT)

    @field_validator("preferred_languages", mode="before")
    @classmethod
    def _coerce_languages(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("country_code")
    @classmethod
    def _upper_country(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else value

    def to_filter_criteria(self) -> "MatchFilterCriteria":
        return MatchFilterCriteria(
            free_sessions_only=self.free_sessions_only,
            require_free_trial=self.require_free_trial,
            min_rating=self.min_rating,
            max_budget=self.budget_per_session,
        )


@dataclass(frozen=True)
class MatchFilterCriteria:
    """Hard pre-filters applied to the eligible pool before scoring."""

    free_sessions_only: bool = False
    require_free_trial: bool = False
    min_rating: Optional[float] = None
    max_budget: Optional[float] = None

    def __post_init__(self) -> None:
        if self.min_rating is not None and not 0 <= self.min_rating <= 5:
            raise ValueError("min_rating must be between 0 and 5")
        if self.max_budget is not None and self.max_budget < 0:
            raise ValueError("max_budget must be non-negative")


@dataclass(frozen=True)
class CompatibilityFactor:
    category: CompatibilityCategory
    weight: int
    score: int
    reason: str
    is_match: bool


@dataclass(frozen=True)
class CompatibilityResult:
    provider_id: str
    requester_id: str
    score: int
    level: CompatibilityLevel
    factors: List[CompatibilityFactor] = field(default_factory=list)
    recommended: bool = False

    @property
    def match_reasons(self) -> List[CompatibilityFactor]:
        """Matching factors, at most five, in factor order."""
        return [factor for factor in self.factors if factor.is_match][:5]


@dataclass(frozen=True)
class RankedMatch:
    provider: Any
    result: CompatibilityResult

    @property
    def score(self) -> int:
        return self.result.score
