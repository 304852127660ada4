"""
FitTrack Analytics Backend - FastAPI Application
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fittrack.core.config import settings
from fittrack.core.logging import setup_logging, get_logger
from fittrack.core.database import init_db
from fittrack.api import analytics
from fittrack.services.analytics import TTLCache

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    logger.info("Starting FitTrack Analytics", version="1.0.0")
    await init_db()
    logger.info("Database initialized")

    app.state.analytics_cache = TTLCache(validity=settings.cache_validity)
    logger.info(
        "Analytics cache ready",
        ttl_seconds=settings.ANALYTICS_CACHE_TTL_SECONDS
    )

    yield

    # Shutdown
    app.state.analytics_cache.clear()
    logger.info("Shutting down FitTrack Analytics")


app = FastAPI(
    title="FitTrack Analytics API",
    description="Workout statistics, activity heatmaps and personal records",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "fittrack-analytics"}
