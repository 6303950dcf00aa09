# sessionbook/models/profile.py
"""
Participant profiles.

A provider offers sessions; a requester books them. Both carry the
attributes the compatibility score reads and the counters the stats
collaborator maintains.
"""

from sqlalchemy import Boolean, Column, Float, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from ..core.constants import MAX_SESSION_DURATION, MIN_SESSION_DURATION
from ..core.enums import LearnerCategory, ProficiencyLevel, VerificationStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import StringArrayType, UTCDateTime


class ProviderProfile(Base):
    """Bookable provider with teaching preferences, pricing and reputation."""

    __tablename__ = "provider_profiles"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(String(26), nullable=False, unique=True, index=True)
    display_name = Column(String(120), nullable=True)
    bio = Column(Text, nullable=True)

    verification_status = Column(
        String(20), nullable=False, default=VerificationStatus.PENDING.value, index=True
    )
    is_active = Column(Boolean, nullable=False, default=True)
    is_accepting_bookings = Column(Boolean, nullable=False, default=True)

    min_session_duration = Column(Integer, nullable=False, default=MIN_SESSION_DURATION)
    max_session_duration = Column(Integer, nullable=False, default=MAX_SESSION_DURATION)

    # Who they teach
    serves_children = Column(Boolean, nullable=False, default=False)
    serves_teenagers = Column(Boolean, nullable=False, default=False)
    serves_adults = Column(Boolean, nullable=False, default=True)
    accepted_levels = Column(StringArrayType, nullable=False, default=lambda: [])
    languages = Column(StringArrayType, nullable=False, default=lambda: [])
    specialties = Column(StringArrayType, nullable=False, default=lambda: [])
    special_context_experience = Column(Boolean, nullable=False, default=False)
    beginner_friendly = Column(Boolean, nullable=False, default=False)

    # Pricing
    hourly_rate = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    free_sessions_only = Column(Boolean, nullable=False, default=False)
    free_trial_available = Column(Boolean, nullable=False, default=False)

    # Reputation and counters
    average_rating = Column(Numeric(3, 2, asdecimal=False), nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)
    total_sessions = Column(Integer, nullable=False, default=0)
    completed_sessions = Column(Integer, nullable=False, default=0)

    # Locality
    country_code = Column(String(2), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    def serves_category(self, category: LearnerCategory | str) -> bool:
        category = LearnerCategory(category)
        if category == LearnerCategory.CHILD:
            return bool(self.serves_children)
        if category == LearnerCategory.TEENAGER:
            return bool(self.serves_teenagers)
        return bool(self.serves_adults)

    @property
    def accepted_level_set(self) -> set[ProficiencyLevel]:
        return {ProficiencyLevel(level) for level in (self.accepted_levels or [])}

    @property
    def is_bookable(self) -> bool:
        return (
            self.verification_status == VerificationStatus.APPROVED.value
            and bool(self.is_accepting_bookings)
        )

    def __repr__(self) -> str:
        return f"<ProviderProfile {self.id} status={self.verification_status}>"


class RequesterProfile(Base):
    """Requester with the learning profile the matcher scores against."""

    __tablename__ = "requester_profiles"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(String(26), nullable=False, unique=True, index=True)
    display_name = Column(String(120), nullable=True)

    learner_category = Column(String(20), nullable=False, default=LearnerCategory.ADULT.value)
    current_level = Column(String(20), nullable=False, default=ProficiencyLevel.NONE.value)
    preferred_languages = Column(StringArrayType, nullable=False, default=lambda: [])
    needs_special_context = Column(Boolean, nullable=False, default=False)

    total_sessions = Column(Integer, nullable=False, default=0)
    completed_sessions = Column(Integer, nullable=False, default=0)
    total_hours = Column(Float, nullable=False, default=0.0)

    country_code = Column(String(2), nullable=True)
    timezone = Column(String(64), nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    def __repr__(self) -> str:
        return f"<RequesterProfile {self.id} category={self.learner_category}>"
