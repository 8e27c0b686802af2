"""Cosmos DB implementation of the flashcard store.

Layout:
- `decks` container, partitioned by /id: one document per deck.
- `flashcards` container, partitioned by /deckId, documents told apart by `type`:
  `card` (content), `fsrs` (scheduling state, id "fsrs-<card id>"),
  `review` (append-only log) and `quota` (per-day review counters,
  id "quota-<YYYY-MM-DD>").

Keeping every document of a deck in one logical partition lets a review
commit run as a single transactional batch: the state replace (guarded by its
etag), the log insert and the quota counter update land together or not at
all.
"""

from __future__ import annotations

import logging
from datetime import datetime

from azure.cosmos import ContainerProxy
from azure.cosmos.exceptions import (
    CosmosBatchOperationError,
    CosmosHttpResponseError,
    CosmosResourceNotFoundError,
)

from flashdeck.db import get_decks_container, get_flashcards_container
from flashdeck.errors import (
    CardNotFoundError,
    CommitFailedError,
    DeckNotFoundError,
    QuotaExceededError,
    StaleStateError,
)
from flashdeck.models import Deck, Flashcard, FlashcardFSRS, FlashcardReview
from flashdeck.srs.fsrs import SchedulingState
from flashdeck.srs.time import StudyDay, ensure_utc, utc_datetime_to_iso_z
from flashdeck.store.base import DueSnapshot, FlashcardStore, QuotaWindow, count_reviews

logger = logging.getLogger(__name__)

CARD_TYPE = "card"
FSRS_TYPE = "fsrs"
REVIEW_TYPE = "review"
QUOTA_TYPE = "quota"

# Attempts when another session updated the same day's quota counter.
QUOTA_RETRIES = 3

_STATE_OP = 0
_QUOTA_OP = 2


def fsrs_id(card_id: str) -> str:
    return f"fsrs-{card_id}"


def quota_id(window: QuotaWindow) -> str:
    return f"quota-{window.day.isoformat()}"


class _QuotaConflict(Exception):
    """The quota counter changed between read and batch."""


class CosmosFlashcardStore(FlashcardStore):
    """Store backed by the `decks` and `flashcards` Cosmos containers."""

    def __init__(
        self,
        decks_container: ContainerProxy | None = None,
        flashcards_container: ContainerProxy | None = None,
    ):
        self._decks_container = decks_container
        self._flashcards_container = flashcards_container

    @property
    def decks(self) -> ContainerProxy:
        """Get the decks container, lazily initializing if needed."""
        if self._decks_container is None:
            self._decks_container = get_decks_container()
        return self._decks_container

    @property
    def flashcards(self) -> ContainerProxy:
        """Get the flashcards container, lazily initializing if needed."""
        if self._flashcards_container is None:
            self._flashcards_container = get_flashcards_container()
        return self._flashcards_container

    # Decks

    def list_decks(self) -> list[Deck]:
        items = self.decks.query_items(
            query="SELECT * FROM c ORDER BY c.createdAt DESC",
            enable_cross_partition_query=True,
        )
        return [Deck(**item) for item in items]

    def get_deck(self, deck_id: str) -> Deck:
        try:
            item = self.decks.read_item(item=deck_id, partition_key=deck_id)
        except CosmosResourceNotFoundError:
            raise DeckNotFoundError(f"Deck with ID {deck_id} not found")
        return Deck(**item)

    def create_deck(self, deck: Deck) -> Deck:
        return Deck(**self.decks.create_item(body=deck.model_dump()))

    def update_deck(self, deck: Deck) -> Deck:
        try:
            item = self.decks.replace_item(item=deck.id, body=deck.model_dump())
        except CosmosResourceNotFoundError:
            raise DeckNotFoundError(f"Deck with ID {deck.id} not found")
        return Deck(**item)

    def delete_deck(self, deck_id: str) -> int:
        self.get_deck(deck_id)
        items = list(
            self.flashcards.query_items(
                query="SELECT c.id, c.type FROM c WHERE c.type = @card OR c.type = @fsrs",
                parameters=[
                    {"name": "@card", "value": CARD_TYPE},
                    {"name": "@fsrs", "value": FSRS_TYPE},
                ],
                partition_key=deck_id,
            )
        )
        for item in items:
            self.flashcards.delete_item(item=item["id"], partition_key=deck_id)
        self.decks.delete_item(item=deck_id, partition_key=deck_id)
        return sum(1 for item in items if item["type"] == CARD_TYPE)

    # Cards

    def list_cards(self, deck_id: str) -> list[Flashcard]:
        self.get_deck(deck_id)
        items = self.flashcards.query_items(
            query="SELECT * FROM c WHERE c.type = @type ORDER BY c.createdAt DESC",
            parameters=[{"name": "@type", "value": CARD_TYPE}],
            partition_key=deck_id,
        )
        return [Flashcard(**item) for item in items]

    def get_card(self, card_id: str) -> Flashcard:
        # Card ids do not carry their deck, so this is a cross-partition lookup.
        items = list(
            self.flashcards.query_items(
                query="SELECT * FROM c WHERE c.id = @id AND c.type = @type",
                parameters=[
                    {"name": "@id", "value": card_id},
                    {"name": "@type", "value": CARD_TYPE},
                ],
                enable_cross_partition_query=True,
            )
        )
        if not items:
            raise CardNotFoundError(f"Card with ID {card_id} not found")
        return Flashcard(**items[0])

    def add_card(self, card: Flashcard, state: SchedulingState) -> Flashcard:
        self.get_deck(card.deckId)
        operations = [
            ("create", (self._card_doc(card),)),
            ("create", (self._fsrs_doc(card.id, card.deckId, state),)),
        ]
        try:
            self.flashcards.execute_item_batch(batch_operations=operations, partition_key=card.deckId)
        except (CosmosBatchOperationError, CosmosHttpResponseError) as exc:
            raise CommitFailedError(f"Could not create card {card.id}: {exc}") from exc
        return card

    def update_card(self, card: Flashcard) -> Flashcard:
        try:
            item = self.flashcards.replace_item(item=card.id, body=self._card_doc(card))
        except CosmosResourceNotFoundError:
            raise CardNotFoundError(f"Card with ID {card.id} not found")
        return Flashcard(**item)

    def delete_card(self, card_id: str) -> None:
        card = self.get_card(card_id)
        operations = [("delete", (card_id,)), ("delete", (fsrs_id(card_id),))]
        try:
            self.flashcards.execute_item_batch(batch_operations=operations, partition_key=card.deckId)
        except (CosmosBatchOperationError, CosmosHttpResponseError) as exc:
            raise CommitFailedError(f"Could not delete card {card_id}: {exc}") from exc

    # Scheduling state and review log

    def load_state(self, card_id: str) -> SchedulingState:
        card = self.get_card(card_id)
        try:
            item = self.flashcards.read_item(item=fsrs_id(card_id), partition_key=card.deckId)
        except CosmosResourceNotFoundError:
            raise CardNotFoundError(f"Scheduling state for card {card_id} not found")
        return FlashcardFSRS(**item).to_state()

    def load_states(self, deck_id: str) -> dict[str, SchedulingState]:
        items = self.flashcards.query_items(
            query="SELECT * FROM c WHERE c.type = @type",
            parameters=[{"name": "@type", "value": FSRS_TYPE}],
            partition_key=deck_id,
        )
        return {item["flashcardId"]: FlashcardFSRS(**item).to_state() for item in items}

    def load_log(
        self,
        card_id: str | None = None,
        deck_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[FlashcardReview]:
        conditions = ["c.type = @type"]
        parameters = [{"name": "@type", "value": REVIEW_TYPE}]
        if card_id is not None:
            conditions.append("c.flashcardId = @cardId")
            parameters.append({"name": "@cardId", "value": card_id})
        # Timestamps share one fixed-width UTC format, so string order is time order.
        if start is not None:
            conditions.append("c.reviewedAt >= @start")
            parameters.append({"name": "@start", "value": utc_datetime_to_iso_z(start)})
        if end is not None:
            conditions.append("c.reviewedAt < @end")
            parameters.append({"name": "@end", "value": utc_datetime_to_iso_z(end)})

        query = f"SELECT * FROM c WHERE {' AND '.join(conditions)} ORDER BY c.reviewedAt ASC"
        if deck_id is not None:
            items = self.flashcards.query_items(query=query, parameters=parameters, partition_key=deck_id)
        else:
            items = self.flashcards.query_items(
                query=query, parameters=parameters, enable_cross_partition_query=True
            )
        return [FlashcardReview(**item) for item in items]

    def load_due_snapshot(self, deck_id: str, now: datetime, window: StudyDay) -> DueSnapshot:
        deck = self.get_deck(deck_id)
        state_items = list(
            self.flashcards.query_items(
                query="SELECT * FROM c WHERE c.type = @type AND c.due <= @now",
                parameters=[
                    {"name": "@type", "value": FSRS_TYPE},
                    {"name": "@now", "value": utc_datetime_to_iso_z(ensure_utc(now))},
                ],
                partition_key=deck_id,
            )
        )
        states = {item["flashcardId"]: FlashcardFSRS(**item).to_state() for item in state_items}

        cards: list[tuple[Flashcard, SchedulingState]] = []
        if states:
            card_items = self.flashcards.query_items(
                query="SELECT * FROM c WHERE c.type = @type AND ARRAY_CONTAINS(@ids, c.id)",
                parameters=[
                    {"name": "@type", "value": CARD_TYPE},
                    {"name": "@ids", "value": list(states)},
                ],
                partition_key=deck_id,
            )
            cards = [(Flashcard(**item), states[item["id"]]) for item in card_items]

        new, review = count_reviews(self.load_log(deck_id=deck_id, start=window.start, end=window.end))
        return DueSnapshot(deck=deck, cards=cards, new_reviewed=new, review_reviewed=review)

    def commit(
        self,
        card_id: str,
        new_state: SchedulingState,
        log_entry: FlashcardReview,
        expected_reps: int,
        quota: QuotaWindow | None = None,
    ) -> None:
        deck_id = self.get_card(card_id).deckId
        for attempt in range(1, QUOTA_RETRIES + 1):
            try:
                self._commit_once(card_id, deck_id, new_state, log_entry, expected_reps, quota)
                return
            except _QuotaConflict:
                logger.info(
                    "Quota counter for deck %s changed concurrently (attempt %d/%d)",
                    deck_id,
                    attempt,
                    QUOTA_RETRIES,
                )
        raise QuotaExceededError(f"Could not reserve daily quota for deck {deck_id}")

    def _commit_once(
        self,
        card_id: str,
        deck_id: str,
        new_state: SchedulingState,
        log_entry: FlashcardReview,
        expected_reps: int,
        quota: QuotaWindow | None,
    ) -> None:
        try:
            current = self.flashcards.read_item(item=fsrs_id(card_id), partition_key=deck_id)
        except CosmosResourceNotFoundError:
            raise CardNotFoundError(f"Scheduling state for card {card_id} not found")
        if current["reps"] != expected_reps:
            raise StaleStateError(
                f"Card {card_id} changed during review (reps {current['reps']} != {expected_reps})"
            )

        operations = [
            (
                "replace",
                (fsrs_id(card_id), self._fsrs_doc(card_id, deck_id, new_state)),
                {"if_match_etag": current["_etag"]},
            ),
            ("create", ({**log_entry.model_dump(), "type": REVIEW_TYPE},)),
        ]
        if quota is not None:
            operations.append(self._quota_operation(deck_id, log_entry, quota))

        try:
            self.flashcards.execute_item_batch(batch_operations=operations, partition_key=deck_id)
        except CosmosBatchOperationError as exc:
            self._raise_for_batch_error(exc, card_id)
        except CosmosHttpResponseError as exc:
            raise CommitFailedError(f"Review commit for card {card_id} failed: {exc.message}") from exc

    def _quota_operation(self, deck_id: str, log_entry: FlashcardReview, quota: QuotaWindow) -> tuple:
        try:
            counter = self.flashcards.read_item(item=quota_id(quota), partition_key=deck_id)
        except CosmosResourceNotFoundError:
            counter = None

        if counter is None:
            # First review of the day since counters were introduced: seed from the log.
            new, review = count_reviews(self.load_log(deck_id=deck_id, start=quota.start, end=quota.end))
        else:
            new, review = counter["newCount"], counter["reviewCount"]

        used = new if log_entry.counts_as_new else review
        if used >= quota.limit_for(log_entry):
            raise QuotaExceededError(
                f"Daily {'new' if log_entry.counts_as_new else 'review'} limit reached for deck {deck_id}"
            )
        if log_entry.counts_as_new:
            new += 1
        else:
            review += 1

        body = {
            "id": quota_id(quota),
            "type": QUOTA_TYPE,
            "deckId": deck_id,
            "day": quota.day.isoformat(),
            "newCount": new,
            "reviewCount": review,
        }
        if counter is None:
            return ("create", (body,))
        return ("replace", (quota_id(quota), body), {"if_match_etag": counter["_etag"]})

    @staticmethod
    def _raise_for_batch_error(exc: CosmosBatchOperationError, card_id: str) -> None:
        index = exc.error_index
        status_code = exc.operation_responses[index].get("statusCode")
        if index == _STATE_OP and status_code == 412:
            raise StaleStateError(f"Card {card_id} changed during review") from exc
        if index == _STATE_OP and status_code == 404:
            raise CardNotFoundError(f"Scheduling state for card {card_id} not found") from exc
        if index == _QUOTA_OP and status_code in (409, 412):
            raise _QuotaConflict() from exc
        raise CommitFailedError(
            f"Review commit for card {card_id} failed at operation {index} (status {status_code})"
        ) from exc

    @staticmethod
    def _card_doc(card: Flashcard) -> dict:
        return {**card.model_dump(), "type": CARD_TYPE}

    @staticmethod
    def _fsrs_doc(card_id: str, deck_id: str, state: SchedulingState) -> dict:
        return {
            "id": fsrs_id(card_id),
            "type": FSRS_TYPE,
            "deckId": deck_id,
            **FlashcardFSRS.from_state(card_id, state).model_dump(),
        }
