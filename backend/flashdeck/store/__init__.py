"""Store module: persistence port and its implementations."""

import logging

from flashdeck.db import get_settings
from .base import DueSnapshot, FlashcardStore, QuotaWindow, count_reviews
from .cosmos_store import CosmosFlashcardStore
from .memory import InMemoryFlashcardStore

logger = logging.getLogger(__name__)

# Singleton instance used by the HTTP layer
_store: FlashcardStore | None = None


def get_store() -> FlashcardStore:
    """Get the store singleton: Cosmos DB when configured, in-memory otherwise."""
    global _store
    if _store is None:
        if get_settings().is_configured():
            logger.info("Using Cosmos DB flashcard store")
            _store = CosmosFlashcardStore()
        else:
            logger.info("Cosmos DB not configured; using in-memory flashcard store")
            _store = InMemoryFlashcardStore()
    return _store


def reset_store() -> None:
    """Reset the store singleton (for testing)."""
    global _store
    _store = None


__all__ = [
    "DueSnapshot",
    "FlashcardStore",
    "QuotaWindow",
    "count_reviews",
    "CosmosFlashcardStore",
    "InMemoryFlashcardStore",
    "get_store",
    "reset_store",
]
