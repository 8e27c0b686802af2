import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from azure.core.exceptions import AzureError
from dotenv import load_dotenv

from flashdeck.config import get_scheduler_settings
from flashdeck.db import close_client, ensure_containers, get_settings, verify_connection
from flashdeck.routers import decks_router, cards_router, study_router, stats_router
from flashdeck.store import get_store

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    scheduler_settings = get_scheduler_settings()

    logger.info(
        "Scheduler: retention %.2f, max interval %dd, fuzz %s, day starts %02d:00 %s",
        scheduler_settings.request_retention,
        scheduler_settings.maximum_interval,
        "on" if scheduler_settings.enable_fuzz else "off",
        scheduler_settings.day_start_hour,
        scheduler_settings.timezone,
    )

    if settings.is_configured():
        if settings.create_containers:
            try:
                ensure_containers()
            except AzureError as exc:
                logger.error("Could not provision Cosmos DB containers: %s", exc)
        if verify_connection():
            logger.info("Connected to Cosmos DB")
        else:
            logger.error("Failed to connect to Cosmos DB - check configuration")
    else:
        logger.warning("Cosmos DB not configured (COSMOS_ENDPOINT not set); data is kept in memory")
    get_store()

    yield

    # Shutdown
    close_client()
    logger.info("Cosmos DB connection closed")


app = FastAPI(
    title="Flashdeck API",
    description="Spaced-repetition flashcard scheduling (FSRS) API",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
cors_origins = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(decks_router)
app.include_router(cards_router)
app.include_router(study_router)
app.include_router(stats_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Flashdeck API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/healthz",
            "decks": "/decks",
            "cards": "/decks/{deck_id}/cards",
            "study": "/study/due?deckId={deck_id}",
            "review": "/study/review",
            "heatmap": "/stats/heatmap",
            "stats": "/stats",
        },
    }


@app.get("/healthz")
async def healthz():
    """Health check endpoint."""
    return {"status": "healthy"}
