"""
Event Registration API - Main Application Entry Point

Participant lifecycle for published events:
- Sign-up with capacity and duplicate checks, ticket numbers
- Organizer/admin participant management
- Single and bulk check-in on event day
- Confirmation emails handed to a Redis-backed job queue
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventreg.core.config import get_settings
from eventreg.core.logging import setup_logging, get_logger
from eventreg.core.metrics import metrics_endpoint
from eventreg.api.router import api_router
from eventreg.api.middleware import RequestLoggingMiddleware
from eventreg.db.session import close_db
from eventreg.infrastructure.redis_client import get_redis, close_redis, get_queue_stats

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
        strict_capacity=settings.STRICT_CAPACITY,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("email_queue_ready", queue=settings.EMAIL_QUEUE_NAME)
    else:
        logger.warning("email_queue_unavailable", message="Confirmation emails will not be queued")

    yield

    await close_redis()
    await close_db()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event registration API: sign-up, capacity tracking, tickets and check-in",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "email_queue": await get_queue_stats(),
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
