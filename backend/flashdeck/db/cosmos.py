"""
Cosmos DB client and connection management.

Authentication modes:
1. Azure Managed Identity (production): DefaultAzureCredential, passwordless
2. Azure CLI credential (local dev against Azure): your `az login` session
3. Cosmos DB Emulator (local dev): the emulator's well-known key

COSMOS_EMULATOR=true selects the emulator; otherwise COSMOS_ENDPOINT is used
with DefaultAzureCredential. When neither is set the app falls back to the
in-memory store.
"""

import os
import logging
from functools import lru_cache
from azure.core.exceptions import AzureError
from azure.cosmos import ContainerProxy, CosmosClient, DatabaseProxy, PartitionKey
from azure.identity import DefaultAzureCredential

logger = logging.getLogger(__name__)

# Cosmos DB Emulator well-known key (public, not a secret)
# https://learn.microsoft.com/en-us/azure/cosmos-db/emulator#authentication
EMULATOR_KEY = "C2y6yDjf5/R+ob0N8A7Cgv30VRDJIWEHLM+4QDU5DE2nQ9nDuVTqobD4b8mGGyPMbIZnqyMsEcaGQy67XIw/Jw=="
EMULATOR_ENDPOINT = "https://localhost:8081"


class CosmosDBSettings:
    """Settings for Cosmos DB connection."""

    def __init__(self):
        self.endpoint = os.getenv("COSMOS_ENDPOINT", "")
        self.database_name = os.getenv("COSMOS_DB_NAME", "flashdeck")
        # Partitioned by /id
        self.decks_container = os.getenv("COSMOS_DECKS_CONTAINER", "decks")
        # Cards, scheduling state, review log and quota counters; partitioned by /deckId
        self.flashcards_container = os.getenv("COSMOS_FLASHCARDS_CONTAINER", "flashcards")
        self.use_emulator = os.getenv("COSMOS_EMULATOR", "false").lower() == "true"
        # Provision database and containers at startup (always on against the emulator)
        self.create_containers = self.use_emulator or (
            os.getenv("COSMOS_CREATE_CONTAINERS", "false").lower() == "true"
        )

    def is_configured(self) -> bool:
        """Check if Cosmos DB is configured."""
        if self.use_emulator:
            return True
        return bool(self.endpoint)


@lru_cache()
def get_settings() -> CosmosDBSettings:
    """Get cached Cosmos DB settings."""
    return CosmosDBSettings()


_client: CosmosClient | None = None
_database: DatabaseProxy | None = None


def get_client() -> CosmosClient:
    """Get or create the Cosmos DB client."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.is_configured():
            raise RuntimeError(
                "Cosmos DB is not configured. "
                "Set COSMOS_ENDPOINT, or COSMOS_EMULATOR=true for the local emulator."
            )

        if settings.use_emulator:
            logger.info("Using Cosmos DB Emulator at %s", EMULATOR_ENDPOINT)
            _client = CosmosClient(
                EMULATOR_ENDPOINT,
                credential=EMULATOR_KEY,
                connection_verify=False,  # self-signed cert
            )
        else:
            logger.info("Using DefaultAzureCredential for Cosmos DB at %s", settings.endpoint)
            _client = CosmosClient(settings.endpoint, credential=DefaultAzureCredential())

    return _client


def get_database() -> DatabaseProxy:
    """Get or create the database proxy."""
    global _database
    if _database is None:
        _database = get_client().get_database_client(get_settings().database_name)
    return _database


def get_container(container_name: str) -> ContainerProxy:
    """Get a container proxy by name."""
    return get_database().get_container_client(container_name)


def get_decks_container() -> ContainerProxy:
    return get_container(get_settings().decks_container)


def get_flashcards_container() -> ContainerProxy:
    return get_container(get_settings().flashcards_container)


def ensure_containers() -> None:
    """Create the database and both containers when missing.

    `flashcards` is partitioned by deck so a review commit fits in one
    transactional batch.
    """
    settings = get_settings()
    database = get_client().create_database_if_not_exists(id=settings.database_name)
    database.create_container_if_not_exists(
        id=settings.decks_container, partition_key=PartitionKey(path="/id")
    )
    database.create_container_if_not_exists(
        id=settings.flashcards_container, partition_key=PartitionKey(path="/deckId")
    )
    logger.info(
        "Ensured containers %s and %s in database %s",
        settings.decks_container,
        settings.flashcards_container,
        settings.database_name,
    )


def verify_connection() -> bool:
    """Verify the Cosmos DB connection is working."""
    settings = get_settings()
    if not settings.is_configured():
        return False
    try:
        get_database().read()
        return True
    except AzureError as exc:
        logger.warning("Cosmos DB connection check failed: %s", exc)
        return False


def close_client():
    """Drop the cached client; CosmosClient manages its own connections."""
    global _client, _database
    _client = None
    _database = None
