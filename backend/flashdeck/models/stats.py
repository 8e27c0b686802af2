"""Statistics models (heatmap and deck totals)."""

from typing import Literal

from pydantic import BaseModel, Field


Timeframe = Literal["week", "month", "year"]

TIMEFRAME_DAYS: dict[str, int] = {"week": 7, "month": 30, "year": 365}


class HeatmapDataPoint(BaseModel):
    date: str = Field(..., description="Study day (YYYY-MM-DD)")
    count: int = Field(0, ge=0)


class HeatmapData(BaseModel):
    """Reviews per study day over a window, oldest first."""

    timeframe: Timeframe
    data: list[HeatmapDataPoint]
    maxCount: int
    totalReviews: int
    streak: int
    startDate: str
    endDate: str


class DeckStats(BaseModel):
    """Card totals per state plus today's activity."""

    deckId: str | None = Field(None, description="Deck, or None for all decks")
    totalCards: int = 0
    newCards: int = 0
    learningCards: int = 0
    reviewCards: int = 0
    relearningCards: int = 0
    dueToday: int = 0
    reviewedToday: int = 0
    streak: int = 0
