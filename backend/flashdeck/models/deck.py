"""Deck models for API requests and responses."""

from pydantic import BaseModel, Field
from uuid import uuid4

from flashdeck.config import get_scheduler_settings
from flashdeck.srs.time import utc_now_iso


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


def _default_new_cards() -> int:
    return get_scheduler_settings().default_daily_new_cards


def _default_review_cards() -> int:
    return get_scheduler_settings().default_daily_review_cards


class DeckBase(BaseModel):
    """Base deck model with common fields."""

    name: str = Field(..., min_length=1, max_length=200, description="Name of the deck")
    description: str | None = Field(None, max_length=1000, description="Optional description")
    pdfId: str | None = Field(None, description="Source document the deck was built from (not owned)")


class DeckCreate(DeckBase):
    """Model for creating a new deck."""

    dailyNewCards: int = Field(
        default_factory=_default_new_cards, ge=0, description="New cards presented per day"
    )
    dailyReviewCards: int = Field(
        default_factory=_default_review_cards, ge=0, description="Learning/review cards presented per day"
    )


class DeckUpdate(BaseModel):
    """Model for updating an existing deck."""

    name: str | None = Field(None, min_length=1, max_length=200, description="Name of the deck")
    description: str | None = Field(None, max_length=1000, description="Optional description")
    dailyNewCards: int | None = Field(None, ge=0, description="New cards presented per day")
    dailyReviewCards: int | None = Field(None, ge=0, description="Learning/review cards presented per day")


class Deck(DeckCreate):
    """Full deck model as stored in the database."""

    id: str = Field(default_factory=generate_uuid, description="Unique identifier")
    createdAt: str = Field(default_factory=utc_now_iso, description="Creation timestamp")
    updatedAt: str = Field(default_factory=utc_now_iso, description="Last update timestamp")

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Organic Chemistry",
                "description": "Cards from chapter 3",
                "pdfId": "pdf-001",
                "dailyNewCards": 20,
                "dailyReviewCards": 200,
                "createdAt": "2025-01-01T00:00:00Z",
                "updatedAt": "2025-01-01T00:00:00Z",
            }
        }


class DeckResponse(DeckBase):
    """Deck response model returned by API."""

    id: str
    dailyNewCards: int
    dailyReviewCards: int
    createdAt: str
    updatedAt: str

    cardCount: int = Field(0, description="Number of cards in the deck")
    dueCardCount: int = Field(0, description="Cards due now, before daily limits")


class DeckListResponse(BaseModel):
    """Response containing a list of decks."""

    decks: list[DeckResponse]
    count: int
