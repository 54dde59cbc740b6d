"""
Cinema Booking API - Main Application Entry Point

Seat reservation for scheduled screenings:
- No seat is ever sold twice, even under concurrent requests
- Per-showtime serialization (asyncio or Redis lock) with bounded waits
- Versioned inventory counter and a transactional committed-seat index
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cinema_booking.core.config import get_settings
from cinema_booking.core.logging import setup_logging, get_logger
from cinema_booking.core.metrics import metrics_endpoint
from cinema_booking.api.router import api_router
from cinema_booking.api.errors import register_exception_handlers
from cinema_booking.api.middleware import RequestLoggingMiddleware
from cinema_booking.services.cache_service import get_redis, close_redis, get_cache_stats

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        lock_strategy=settings.LOCK_STRATEGY,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    elif settings.LOCK_STRATEGY == "redis":
        logger.error("redis_unavailable", message="Bookings will fail with BUSY until Redis is back")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Cinema seat booking API with concurrency-safe reservations",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "lock_strategy": settings.LOCK_STRATEGY,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
