"""Card models for API requests and responses."""

from typing import Literal
from pydantic import BaseModel, Field

from flashdeck.models.deck import generate_uuid
from flashdeck.models.review import FlashcardFSRS
from flashdeck.srs.time import utc_now_iso


CardType = Literal["basic", "cloze"]


class CardBase(BaseModel):
    """Base card model with common fields."""

    front: str = Field(..., min_length=1, max_length=4000, description="Front side of the card")
    back: str = Field(..., min_length=1, max_length=4000, description="Back side of the card")
    cardType: CardType = Field("basic", description="basic or cloze")
    clozeData: str | None = Field(None, description="Cloze mask data (cloze cards only)")
    sourcePage: int | None = Field(None, ge=1, description="Page of the source document")
    highlightId: str | None = Field(None, description="Source highlight this card was made from")


class CardCreate(CardBase):
    """Model for creating a new card."""

    pass


class CardUpdate(BaseModel):
    """Model for updating card content. Scheduling state is never touched."""

    front: str | None = Field(None, min_length=1, max_length=4000, description="Front side of the card")
    back: str | None = Field(None, min_length=1, max_length=4000, description="Back side of the card")
    cardType: CardType | None = Field(None, description="basic or cloze")
    clozeData: str | None = Field(None, description="Cloze mask data (cloze cards only)")
    sourcePage: int | None = Field(None, ge=1, description="Page of the source document")
    highlightId: str | None = Field(None, description="Source highlight this card was made from")


class Flashcard(CardBase):
    """Full card model as stored in the database."""

    id: str = Field(default_factory=generate_uuid, description="Unique identifier")
    deckId: str = Field(..., description="Parent deck ID")
    createdAt: str = Field(default_factory=utc_now_iso, description="Creation timestamp")
    updatedAt: str = Field(default_factory=utc_now_iso, description="Last update timestamp")

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174001",
                "deckId": "123e4567-e89b-12d3-a456-426614174000",
                "front": "What is the hybridization of carbon in methane?",
                "back": "sp3",
                "cardType": "basic",
                "sourcePage": 42,
                "createdAt": "2025-01-01T00:00:00Z",
                "updatedAt": "2025-01-01T00:00:00Z",
            }
        }


class CardResponse(CardBase):
    """Card response model returned by API."""

    id: str
    deckId: str
    createdAt: str
    updatedAt: str

    fsrs: FlashcardFSRS | None = Field(None, description="Scheduling state of the card")


class CardListResponse(BaseModel):
    """Response containing a list of cards."""

    cards: list[CardResponse]
    count: int
