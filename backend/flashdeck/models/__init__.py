"""Models module for Pydantic schemas."""

from .deck import (
    Deck,
    DeckBase,
    DeckCreate,
    DeckUpdate,
    DeckResponse,
    DeckListResponse,
)
from .review import (
    FlashcardFSRS,
    FlashcardReview,
    IntervalPreview,
    PreviewResponse,
    ReviewRequest,
    ReviewResponse,
    SessionProgress,
)
from .card import (
    CardBase,
    CardCreate,
    CardListResponse,
    CardResponse,
    CardType,
    CardUpdate,
    Flashcard,
)
from .study import DueCard, DueCardsResponse
from .stats import TIMEFRAME_DAYS, DeckStats, HeatmapData, HeatmapDataPoint, Timeframe

__all__ = [
    "Deck",
    "DeckBase",
    "DeckCreate",
    "DeckUpdate",
    "DeckResponse",
    "DeckListResponse",
    "FlashcardFSRS",
    "FlashcardReview",
    "IntervalPreview",
    "PreviewResponse",
    "ReviewRequest",
    "ReviewResponse",
    "SessionProgress",
    "CardBase",
    "CardCreate",
    "CardListResponse",
    "CardResponse",
    "CardType",
    "CardUpdate",
    "Flashcard",
    "DueCard",
    "DueCardsResponse",
    "TIMEFRAME_DAYS",
    "DeckStats",
    "HeatmapData",
    "HeatmapDataPoint",
    "Timeframe",
]
