# tests/factories.py
"""
Builders for transient profile rows.

Column defaults only apply on insert, so every attribute the scorer and
the services read is set here explicitly. Pure tests use the objects as
they are; database tests add them to a session.
"""

from sessionbook.core.enums import LearnerCategory, ProficiencyLevel, VerificationStatus
from sessionbook.core.ulid_helper import generate_ulid
from sessionbook.models.profile import ProviderProfile, RequesterProfile


def build_provider(**overrides) -> ProviderProfile:
    values = {
        "id": generate_ulid(),
        "user_id": generate_ulid(),
        "display_name": "Provider",
        "verification_status": VerificationStatus.APPROVED.value,
        "is_active": True,
        "is_accepting_bookings": True,
        "min_session_duration": 15,
        "max_session_duration": 180,
        "serves_children": False,
        "serves_teenagers": False,
        "serves_adults": True,
        "accepted_levels": [level.value for level in ProficiencyLevel],
        "languages": ["en"],
        "specialties": [],
        "special_context_experience": False,
        "beginner_friendly": False,
        "hourly_rate": 30.0,
        "currency": "USD",
        "free_sessions_only": False,
        "free_trial_available": False,
        "average_rating": 0.0,
        "total_reviews": 0,
        "total_sessions": 0,
        "completed_sessions": 0,
        "country_code": None,
        "timezone": "UTC",
    }
    values.update(overrides)
    return ProviderProfile(**values)


def build_requester(**overrides) -> RequesterProfile:
    values = {
        "id": generate_ulid(),
        "user_id": generate_ulid(),
        "display_name": "Requester",
        "learner_category": LearnerCategory.ADULT.value,
        "current_level": ProficiencyLevel.BEGINNER.value,
        "preferred_languages": ["en"],
        "needs_special_context": False,
        "total_sessions": 0,
        "completed_sessions": 0,
        "total_hours": 0.0,
        "country_code": None,
        "timezone": None,
    }
    values.update(overrides)
    return RequesterProfile(**values)
