"""
Core enums for SessionBook.

String-valued so they persist as plain text columns and serialize
unchanged through pydantic.
"""

from enum import Enum


class SessionStatus(str, Enum):
    """Session lifecycle statuses."""

    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED_BY_PROVIDER = "CANCELLED_BY_PROVIDER"
    CANCELLED_BY_REQUESTER = "CANCELLED_BY_REQUESTER"
    NO_SHOW_PROVIDER = "NO_SHOW_PROVIDER"
    NO_SHOW_REQUESTER = "NO_SHOW_REQUESTER"

    @classmethod
    def active(cls) -> tuple["SessionStatus", ...]:
        """Statuses that hold the provider's time."""
        return (cls.SCHEDULED, cls.IN_PROGRESS)

    @classmethod
    def terminal(cls) -> tuple["SessionStatus", ...]:
        return (
            cls.COMPLETED,
            cls.CANCELLED_BY_PROVIDER,
            cls.CANCELLED_BY_REQUESTER,
            cls.NO_SHOW_PROVIDER,
            cls.NO_SHOW_REQUESTER,
        )


class VerificationStatus(str, Enum):
    """Provider vetting states. Only APPROVED providers can be booked."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class LearnerCategory(str, Enum):
    CHILD = "CHILD"
    TEENAGER = "TEENAGER"
    ADULT = "ADULT"


class ProficiencyLevel(str, Enum):
    """Requester proficiency, lowest first."""

    NONE = "NONE"
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class ParticipantRole(str, Enum):
    PROVIDER = "provider"
    REQUESTER = "requester"


class CompatibilityCategory(str, Enum):
    """The seven weighted dimensions of a compatibility score."""

    CATEGORY = "CATEGORY"
    LEVEL = "LEVEL"
    LANGUAGES = "LANGUAGES"
    CONTEXT = "CONTEXT"
    BUDGET = "BUDGET"
    LOCALITY = "LOCALITY"
    REPUTATION = "REPUTATION"


class CompatibilityLevel(str, Enum):
    EXCELLENT = "EXCELLENT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    POOR = "POOR"
