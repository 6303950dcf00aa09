"""Platform-wide constants for SessionBook."""

from __future__ import annotations

# Session duration defaults (providers may narrow these on their profile)
MIN_SESSION_DURATION = 15  # minutes
MAX_SESSION_DURATION = 180  # minutes (3 hours)

# A provider may open a session this many minutes before its scheduled start
EARLY_START_MINUTES = 15

# Cancellation refund tiers
FULL_REFUND_HOURS = 24
PARTIAL_REFUND_HOURS = 2
FULL_REFUND_PERCENTAGE = 100
PARTIAL_REFUND_PERCENTAGE = 50
NO_REFUND_PERCENTAGE = 0

# Slot generation never steps by more than this
MAX_SLOT_STEP_MINUTES = 30

# Compatibility weights (total = 400)
CATEGORY_WEIGHT = 100
LEVEL_WEIGHT = 80
LANGUAGES_WEIGHT = 80
CONTEXT_WEIGHT = 50
BUDGET_WEIGHT = 40
LOCALITY_WEIGHT = 30
REPUTATION_WEIGHT = 20
TOTAL_COMPATIBILITY_WEIGHT = (
    CATEGORY_WEIGHT
    + LEVEL_WEIGHT
    + LANGUAGES_WEIGHT
    + CONTEXT_WEIGHT
    + BUDGET_WEIGHT
    + LOCALITY_WEIGHT
    + REPUTATION_WEIGHT
)

# Matching thresholds
MIN_MATCH_SCORE = 20
RECOMMENDED_MATCH_SCORE = 60
DEFAULT_MATCH_LIMIT = 10
MAX_MATCH_LIMIT = 50

# Listing limits
UPCOMING_SESSIONS_LIMIT = 10
PAST_SESSIONS_LIMIT = 20
