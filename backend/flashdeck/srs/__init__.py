"""SRS core (FSRS scheduling, fuzz and time helpers)."""

from .fsrs import (
    DEFAULT_WEIGHTS,
    FSRSParameters,
    FSRSScheduler,
    ScheduledReview,
    SchedulingState,
    new_scheduling_state,
    parse_rating,
)
from .fuzz import FixedFuzz, FuzzSource, SeededFuzz
from .intervals import format_interval
from .states import CardState, Rating
from .time import (
    StudyDay,
    parse_iso_z,
    study_day_for,
    utc_datetime_to_iso_z,
    utc_now,
    utc_now_iso,
)

__all__ = [
    "DEFAULT_WEIGHTS",
    "FSRSParameters",
    "FSRSScheduler",
    "ScheduledReview",
    "SchedulingState",
    "new_scheduling_state",
    "parse_rating",
    "FixedFuzz",
    "FuzzSource",
    "SeededFuzz",
    "format_interval",
    "CardState",
    "Rating",
    "StudyDay",
    "parse_iso_z",
    "study_day_for",
    "utc_datetime_to_iso_z",
    "utc_now",
    "utc_now_iso",
]
