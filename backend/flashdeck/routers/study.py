"""Study (review session) API router."""

import logging

from fastapi import APIRouter, HTTPException, status

from flashdeck.errors import SchedulingError
from flashdeck.models import (
    CardResponse,
    DueCard,
    DueCardsResponse,
    FlashcardFSRS,
    IntervalPreview,
    PreviewResponse,
    ReviewRequest,
    ReviewResponse,
    SessionProgress,
)
from flashdeck.routers.errors import http_error
from flashdeck.services import ReviewSessionCoordinator, StudySessionState, get_session_store
from flashdeck.srs.states import Rating
from flashdeck.srs.time import utc_now
from flashdeck.store import get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/study", tags=["study"])


def get_coordinator() -> ReviewSessionCoordinator:
    return ReviewSessionCoordinator(get_store(), sessions=get_session_store())


def _progress(session: StudySessionState | None) -> SessionProgress | None:
    if session is None:
        return None
    return SessionProgress(
        sessionId=session.session_id,
        deckId=session.deck_id,
        reviewed=session.reviewed,
        againCount=session.again_count,
        successStreak=session.success_streak,
        position=session.position,
        queueSize=len(session.queue),
    )


@router.get("/due", response_model=DueCardsResponse)
async def get_due_cards(deckId: str, sessionId: str | None = None, limit: int | None = None) -> DueCardsResponse:
    """Return today's review queue for a deck, with button labels per card."""
    coordinator = get_coordinator()
    now = utc_now()
    try:
        queue, session = coordinator.due_queue(deckId, now, session_id=sessionId, limit=limit)
    except SchedulingError as exc:
        raise http_error(exc)

    cards = [
        DueCard(
            card=CardResponse(**card.model_dump(), fsrs=FlashcardFSRS.from_state(card.id, state)),
            nextIntervals=coordinator.scheduler.next_intervals(state, now, card.id),
        )
        for card, state in queue.cards
    ]
    return DueCardsResponse(
        deckId=deckId,
        sessionId=session.session_id,
        cards=cards,
        count=len(cards),
        newRemaining=queue.new_remaining,
        reviewRemaining=queue.review_remaining,
    )


@router.get("/preview/{card_id}", response_model=PreviewResponse)
async def preview_card(card_id: str) -> PreviewResponse:
    """Show what each rating would do to a card, without changing it."""
    coordinator = get_coordinator()
    now = utc_now()
    try:
        state = coordinator.store.load_state(card_id)
    except SchedulingError as exc:
        raise http_error(exc)
    outcomes = coordinator.scheduler.repeat(state, now, card_id)
    return PreviewResponse(
        cardId=card_id,
        retrievability=coordinator.scheduler.retrievability_at(state, now),
        previews=[IntervalPreview.from_review(outcomes[rating]) for rating in Rating],
    )


@router.post("/review", response_model=ReviewResponse)
async def submit_review(request: ReviewRequest) -> ReviewResponse:
    """Rate a card (1=Again, 2=Hard, 3=Good, 4=Easy) and commit the result."""
    coordinator = get_coordinator()
    try:
        outcome = coordinator.submit_review(request.cardId, request.rating, session_id=request.sessionId)
    except SchedulingError as exc:
        raise http_error(exc)

    return ReviewResponse(
        fsrs=FlashcardFSRS.from_state(outcome.card.id, outcome.state),
        review=outcome.log_entry,
        previews=[IntervalPreview.from_review(outcome.previews[rating]) for rating in Rating],
        nextIntervals=outcome.next_intervals,
        session=_progress(outcome.session),
    )


@router.get("/sessions/{session_id}", response_model=SessionProgress)
async def get_session(session_id: str) -> SessionProgress:
    """Progress counters of a study session."""
    session = get_session_store().get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Study session {session_id} not found or expired",
        )
    return _progress(session)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_session(session_id: str) -> None:
    """Forget a study session's progress."""
    get_session_store().reset(session_id)
    logger.info("Study session %s reset", session_id)
