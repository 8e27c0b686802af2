"""Services: due-card selection, review sessions and statistics."""

from .review_session import ReviewOutcome, ReviewSessionCoordinator, build_scheduler
from .selector import DueCardSelector, DueQueue
from .session_store import SessionStore, StudySessionState, get_session_store, reset_session_store
from .stats import StatsAggregator, review_streak

__all__ = [
    "ReviewOutcome",
    "ReviewSessionCoordinator",
    "build_scheduler",
    "DueCardSelector",
    "DueQueue",
    "SessionStore",
    "StudySessionState",
    "get_session_store",
    "reset_session_store",
    "StatsAggregator",
    "review_streak",
]
