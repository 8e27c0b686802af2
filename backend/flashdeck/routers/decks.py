"""Decks API router."""

from fastapi import APIRouter, status

from flashdeck.errors import SchedulingError
from flashdeck.models import Deck, DeckCreate, DeckListResponse, DeckResponse, DeckUpdate
from flashdeck.routers.errors import http_error
from flashdeck.srs.time import utc_now, utc_now_iso
from flashdeck.store import FlashcardStore, get_store

router = APIRouter(prefix="/decks", tags=["decks"])


def _deck_response(store: FlashcardStore, deck: Deck) -> DeckResponse:
    now = utc_now()
    states = store.load_states(deck.id)
    due = sum(1 for state in states.values() if state.due <= now)
    return DeckResponse(**deck.model_dump(), cardCount=len(states), dueCardCount=due)


@router.get("", response_model=DeckListResponse)
async def list_decks() -> DeckListResponse:
    """List all decks with card and due counts."""
    store = get_store()
    decks = [_deck_response(store, deck) for deck in store.list_decks()]
    return DeckListResponse(decks=decks, count=len(decks))


@router.get("/{deck_id}", response_model=DeckResponse)
async def get_deck(deck_id: str) -> DeckResponse:
    """Get a specific deck by ID."""
    store = get_store()
    try:
        return _deck_response(store, store.get_deck(deck_id))
    except SchedulingError as exc:
        raise http_error(exc)


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def create_deck(deck_create: DeckCreate) -> DeckResponse:
    """Create a new deck."""
    store = get_store()
    deck = store.create_deck(Deck(**deck_create.model_dump()))
    return DeckResponse(**deck.model_dump())


@router.put("/{deck_id}", response_model=DeckResponse)
async def update_deck(deck_id: str, deck_update: DeckUpdate) -> DeckResponse:
    """Update name, description or daily limits of a deck."""
    store = get_store()
    try:
        existing = store.get_deck(deck_id)
        update_data = deck_update.model_dump(exclude_unset=True)
        if update_data:
            existing = existing.model_copy(update={**update_data, "updatedAt": utc_now_iso()})
            existing = store.update_deck(existing)
        return _deck_response(store, existing)
    except SchedulingError as exc:
        raise http_error(exc)


@router.delete("/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deck(deck_id: str) -> None:
    """Delete a deck and its cards. The review history is kept."""
    try:
        get_store().delete_deck(deck_id)
    except SchedulingError as exc:
        raise http_error(exc)
