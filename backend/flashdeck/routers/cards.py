"""Cards API router."""

from fastapi import APIRouter, status

from flashdeck.errors import CardNotFoundError, SchedulingError
from flashdeck.models import (
    CardCreate,
    CardListResponse,
    CardResponse,
    CardUpdate,
    Flashcard,
    FlashcardFSRS,
)
from flashdeck.routers.errors import http_error
from flashdeck.services import ReviewSessionCoordinator
from flashdeck.srs.time import utc_now_iso
from flashdeck.store import FlashcardStore, get_store

router = APIRouter(prefix="/decks/{deck_id}/cards", tags=["cards"])


def _card_in_deck(store: FlashcardStore, deck_id: str, card_id: str) -> Flashcard:
    store.get_deck(deck_id)
    card = store.get_card(card_id)
    if card.deckId != deck_id:
        raise CardNotFoundError(f"Card with ID {card_id} not found in deck {deck_id}")
    return card


def _card_response(store: FlashcardStore, card: Flashcard) -> CardResponse:
    state = store.load_state(card.id)
    return CardResponse(**card.model_dump(), fsrs=FlashcardFSRS.from_state(card.id, state))


@router.get("", response_model=CardListResponse)
async def list_cards(deck_id: str) -> CardListResponse:
    """List all cards in a deck with their scheduling state."""
    store = get_store()
    try:
        cards = store.list_cards(deck_id)
        states = store.load_states(deck_id)
    except SchedulingError as exc:
        raise http_error(exc)
    responses = [
        CardResponse(
            **card.model_dump(),
            fsrs=FlashcardFSRS.from_state(card.id, states[card.id]) if card.id in states else None,
        )
        for card in cards
    ]
    return CardListResponse(cards=responses, count=len(responses))


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(deck_id: str, card_id: str) -> CardResponse:
    """Get a specific card by ID."""
    store = get_store()
    try:
        return _card_response(store, _card_in_deck(store, deck_id, card_id))
    except SchedulingError as exc:
        raise http_error(exc)


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(deck_id: str, card_create: CardCreate) -> CardResponse:
    """Create a card in a deck; it starts as a New card due now."""
    store = get_store()
    try:
        card = ReviewSessionCoordinator(store).create_card(
            Flashcard(deckId=deck_id, **card_create.model_dump())
        )
        return _card_response(store, card)
    except SchedulingError as exc:
        raise http_error(exc)


@router.put("/{card_id}", response_model=CardResponse)
async def update_card(deck_id: str, card_id: str, card_update: CardUpdate) -> CardResponse:
    """Edit card content. Scheduling state is left as is."""
    store = get_store()
    try:
        existing = _card_in_deck(store, deck_id, card_id)
        update_data = card_update.model_dump(exclude_unset=True)
        if update_data:
            existing = existing.model_copy(update={**update_data, "updatedAt": utc_now_iso()})
            existing = store.update_card(existing)
        return _card_response(store, existing)
    except SchedulingError as exc:
        raise http_error(exc)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(deck_id: str, card_id: str) -> None:
    """Delete a card and its scheduling state. Its review history is kept."""
    store = get_store()
    try:
        _card_in_deck(store, deck_id, card_id)
        store.delete_card(card_id)
    except SchedulingError as exc:
        raise http_error(exc)
