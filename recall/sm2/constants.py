"""
SM-2 Constants and Parameters

All configurable parameters for the scheduler in one place.
"""

from datetime import timedelta
from enum import Enum, IntEnum


# ---- Quality Ratings ----

class QualityRating(IntEnum):
    """Learner's self-rating after seeing the answer."""
    AGAIN = 1  # Recall failed
    HARD = 2   # Recalled poorly
    GOOD = 3   # Recalled normally
    EASY = 4   # Recalled effortlessly


PASSING_QUALITY = QualityRating.GOOD  # Ratings at or above count as correct


# ---- Frequency Modes ----

class FrequencyMode(str, Enum):
    """User-level pace preference scaling computed intervals."""
    INTENSIVE = "intensive"
    NORMAL = "normal"
    RELAXED = "relaxed"


INTENSIVE_FACTOR = 0.5
RELAXED_FACTOR = 1.5


# ---- Review Status ----

class ReviewStatus(str, Enum):
    NEW = "new"            # repetitions == 0
    LEARNING = "learning"  # 1 <= repetitions < MASTERED_REPETITIONS
    MASTERED = "mastered"  # repetitions >= MASTERED_REPETITIONS


MASTERED_REPETITIONS = 5


# ---- Ease Factor ----

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 2.5
FAILURE_EASE_PENALTY = 0.2   # Subtracted on AGAIN/HARD
EASE_STEP = 0.1              # Per quality point above GOOD


# ---- Intervals ----

FAILURE_INTERVAL = 1         # Days after AGAIN/HARD
FIRST_SUCCESS_INTERVAL = 6   # Days after the first successful recall
SKIP_DELAY = timedelta(hours=1)


# ---- Due-Set Filters ----

DIFFICULT_EASE_THRESHOLD = 2.3         # "difficult" means ease factor below this
RECENT_WINDOW = timedelta(days=7)      # "recently learned" look-back window
