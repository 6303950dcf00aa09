"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from .availability import AvailabilityWindow
from .profile import ProviderProfile, RequesterProfile
from .session import PROVIDER_OVERLAP_CONSTRAINT, BookedSession

__all__ = [
    "AvailabilityWindow",
    "BookedSession",
    "PROVIDER_OVERLAP_CONSTRAINT",
    "ProviderProfile",
    "RequesterProfile",
]
