"""Tests for the review session coordinator."""

import logging
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from flashdeck.errors import CardNotFoundError, CommitFailedError, InvalidRatingError, StaleStateError
from flashdeck.models import Deck, Flashcard
from flashdeck.services import ReviewSessionCoordinator, SessionStore
from flashdeck.srs import CardState, FSRSScheduler, Rating, SeededFuzz
from flashdeck.store import InMemoryFlashcardStore


class TestSubmitReview:
    """submit_review happy paths."""

    def test_new_card_rated_good(self, store, deck, coordinator, make_cards, now):
        card = make_cards(deck, 1)[0]

        outcome = coordinator.submit_review(card.id, 3, now)

        assert outcome.state.state == CardState.LEARNING
        assert outcome.state.reps == 1
        assert outcome.state.scheduled_days > 0
        log = store.load_log(card_id=card.id)
        assert len(log) == 1
        assert log[0].rating == 3
        assert log[0].state == CardState.NEW
        assert log[0].scheduledDays == 0
        assert log[0].deckId == deck.id

    def test_reload_matches_computed_state(self, store, deck, coordinator, make_cards, now):
        card = make_cards(deck, 1)[0]

        outcome = coordinator.submit_review(card.id, Rating.EASY, now.replace(microsecond=654321))

        assert store.load_state(card.id) == outcome.state

    def test_committed_state_matches_preview(self, deck, coordinator, make_cards, now):
        card = make_cards(deck, 1)[0]
        preview = coordinator.preview(card.id, now)

        outcome = coordinator.submit_review(card.id, Rating.HARD, now)

        assert outcome.previews == preview
        assert outcome.state == preview[Rating.HARD].state

    def test_next_intervals_for_updated_card(self, deck, coordinator, make_cards, now):
        card = make_cards(deck, 1)[0]

        outcome = coordinator.submit_review(card.id, Rating.GOOD, now)

        assert set(outcome.next_intervals) == {"again", "hard", "good", "easy"}
        assert outcome.next_intervals["again"] == "10m"

    def test_log_entry_records_prior_schedule_and_elapsed_gap(self, store, deck, coordinator, make_cards, now):
        card = make_cards(deck, 1)[0]
        first = coordinator.submit_review(card.id, Rating.GOOD, now)
        later = now + timedelta(days=first.state.scheduled_days)

        second = coordinator.submit_review(card.id, Rating.GOOD, later)

        assert second.log_entry.state == CardState.LEARNING
        assert second.log_entry.scheduledDays == first.state.scheduled_days
        assert second.log_entry.elapsedDays == first.state.scheduled_days
        assert second.log_entry.elapsedDays == second.state.elapsed_days
        assert first.log_entry.elapsedDays == 0
        assert second.state.state == CardState.REVIEW

    def test_logs_committed_review(self, deck, coordinator, make_cards, now, caplog):
        card = make_cards(deck, 1)[0]
        with caplog.at_level(logging.INFO, logger="flashdeck.services.review_session"):
            coordinator.submit_review(card.id, Rating.GOOD, now)
        assert f"Card {card.id} rated GOOD" in caplog.text


class TestPreview:
    """preview is read-only."""

    def test_preview_does_not_write(self, store, deck, coordinator, make_cards, now):
        card = make_cards(deck, 1)[0]
        before = store.load_state(card.id)

        first = coordinator.preview(card.id, now)
        second = coordinator.preview(card.id, now)

        assert first == second
        assert store.load_state(card.id) == before
        assert store.load_log(card_id=card.id) == []

    def test_preview_matches_commit_seconds_later(self, store, settings, deck, make_cards, now):
        coordinator = ReviewSessionCoordinator(store, scheduler=FSRSScheduler(fuzz=SeededFuzz()), settings=settings)
        card = make_cards(deck, 1)[0]
        coordinator.submit_review(card.id, Rating.EASY, now)
        shown_at = now + timedelta(days=20)

        preview = coordinator.preview(card.id, shown_at)
        outcome = coordinator.submit_review(card.id, Rating.GOOD, shown_at + timedelta(seconds=4))

        assert preview[Rating.GOOD].state.scheduled_days > 2
        assert outcome.state.scheduled_days == preview[Rating.GOOD].state.scheduled_days

    def test_preview_unknown_card(self, coordinator, now):
        with pytest.raises(CardNotFoundError):
            coordinator.preview("missing", now)


class TestDeclinedReviews:
    """Declined reviews leave the card untouched."""

    @pytest.mark.parametrize("rating", [0, 5, "good", None])
    def test_invalid_rating_rejected_before_store_access(self, rating, now):
        store = MagicMock()
        coordinator = ReviewSessionCoordinator(store)

        with pytest.raises(InvalidRatingError):
            coordinator.submit_review("card-1", rating, now)

        store.get_card.assert_not_called()
        store.load_state.assert_not_called()
        store.commit.assert_not_called()

    def test_unknown_card(self, coordinator, now):
        with pytest.raises(CardNotFoundError):
            coordinator.submit_review("missing", Rating.GOOD, now)

    def test_concurrent_review_is_stale(self, store, deck, coordinator, make_cards, now, monkeypatch):
        card = make_cards(deck, 1)[0]
        original = store.load_state(card.id)
        committed = coordinator.submit_review(card.id, Rating.GOOD, now)

        # A second session that loaded the card before the first commit
        monkeypatch.setattr(store, "load_state", lambda card_id: original)
        with pytest.raises(StaleStateError) as exc_info:
            coordinator.submit_review(card.id, Rating.EASY, now)
        monkeypatch.undo()

        assert exc_info.value.reason == "stale_state"
        assert store.load_state(card.id) == committed.state
        assert len(store.load_log(card_id=card.id)) == 1

    def test_commit_failure_keeps_previous_state(self, now, caplog):
        class FailingStore(InMemoryFlashcardStore):
            def commit(self, *args, **kwargs):
                raise CommitFailedError("disk full")

        store = FailingStore()
        deck = store.create_deck(Deck(name="Broken"))
        coordinator = ReviewSessionCoordinator(store)
        card = coordinator.create_card(Flashcard(deckId=deck.id, front="Q", back="A"), now=now)

        with caplog.at_level(logging.WARNING, logger="flashdeck.services.review_session"):
            with pytest.raises(CommitFailedError):
                coordinator.submit_review(card.id, Rating.GOOD, now)

        assert store.load_state(card.id).state == CardState.NEW
        assert store.load_log(card_id=card.id) == []
        assert "commit_failed" in caplog.text


class TestSessions:
    """Session-local progress."""

    def test_session_counts_reviews(self, deck, coordinator, make_cards, now):
        cards = make_cards(deck, 3)
        queue, session = coordinator.due_queue(deck.id, now, session_id="s1")
        assert session.queue == queue.card_ids

        coordinator.submit_review(queue.card_ids[0], Rating.GOOD, now, session_id="s1")
        outcome = coordinator.submit_review(queue.card_ids[1], Rating.AGAIN, now, session_id="s1")

        assert outcome.session.reviewed == 2
        assert outcome.session.again_count == 1
        assert outcome.session.success_streak == 0
        assert outcome.session.position == 2
        assert len(cards) == 3

    def test_switching_decks_resets_progress(self, store, deck, coordinator, make_cards, now):
        other = store.create_deck(Deck(name="Other"))
        first = make_cards(deck, 2)
        second = make_cards(other, 1)

        coordinator.due_queue(deck.id, now, session_id="s1")
        coordinator.submit_review(first[0].id, Rating.GOOD, now, session_id="s1")
        coordinator.submit_review(first[1].id, Rating.GOOD, now, session_id="s1")

        outcome = coordinator.submit_review(second[0].id, Rating.GOOD, now, session_id="s1")

        assert outcome.session.deck_id == other.id
        assert outcome.session.reviewed == 1

    def test_no_session_without_id(self, deck, coordinator, make_cards, now):
        card = make_cards(deck, 1)[0]
        assert coordinator.submit_review(card.id, Rating.GOOD, now).session is None

    def test_due_queue_without_session_store(self, store, deck, scheduler, settings, make_cards, now):
        make_cards(deck, 2)
        coordinator = ReviewSessionCoordinator(store, scheduler=scheduler, settings=settings)

        queue, session = coordinator.due_queue(deck.id, now)

        assert session is None
        assert len(queue.cards) == 2


class TestCreateCard:
    """Card creation always starts a fresh New state."""

    def test_create_card_is_new_and_due(self, store, deck, coordinator, now):
        card = coordinator.create_card(Flashcard(deckId=deck.id, front="Q", back="A"), now=now)
        state = store.load_state(card.id)

        assert state.state == CardState.NEW
        assert state.due == now
        assert state.stability == 0
        assert state.difficulty == 0

    def test_uses_given_session_store(self, store, scheduler, settings):
        sessions = SessionStore()
        a = ReviewSessionCoordinator(store, scheduler=scheduler, settings=settings, sessions=sessions)
        assert a.sessions is sessions
