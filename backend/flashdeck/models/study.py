"""Due-queue models for the study endpoints."""

from pydantic import BaseModel, Field

from flashdeck.models.card import CardResponse


class DueCard(BaseModel):
    """A due card with its scheduling state and button labels."""

    card: CardResponse
    nextIntervals: dict[str, str]


class DueCardsResponse(BaseModel):
    """Ordered due queue for a deck."""

    deckId: str
    sessionId: str
    cards: list[DueCard]
    count: int
    newRemaining: int = Field(..., description="New cards still allowed today")
    reviewRemaining: int = Field(..., description="Learning/review cards still allowed today")
