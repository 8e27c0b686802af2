"""API routers module."""

from .decks import router as decks_router
from .cards import router as cards_router
from .study import router as study_router
from .stats import router as stats_router

__all__ = [
    "decks_router",
    "cards_router",
    "study_router",
    "stats_router",
]
