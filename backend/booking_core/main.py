"""
Room Booking Core - Main Application Entry Point

Hotel room holds and reservations with:
- Per-room consistency gate so no room is ever double-booked
- Background expiration of stale holds
- Structured logging with request correlation
- PostgreSQL with range indexes and connection pooling
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from booking_core.api.middleware import RequestLoggingMiddleware
from booking_core.api.router import api_router
from booking_core.core.config import get_settings
from booking_core.core.logging import get_logger, setup_logging
from booking_core.core.metrics import metrics_endpoint
from booking_core.db.session import get_sessionmaker
from booking_core.infrastructure.redis_client import close_redis, get_redis, redis_status
from booking_core.services.strategy_factory import get_gate
from booking_core.services.sweeper import ExpirationSweeper

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        gate_backend=settings.GATE_BACKEND,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running with in-process gate and local events only")

    sweeper = None
    if settings.SWEEP_ENABLED:
        sweeper = ExpirationSweeper(get_sessionmaker(), settings.SWEEP_INTERVAL_SECONDS)
        sweeper.start()
    app.state.sweeper = sweeper

    yield

    if sweeper:
        await sweeper.stop()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Hotel room holds and reservations with per-room serialized writes",
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

app.include_router(api_router)


@app.exception_handler(OperationalError)
async def storage_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("storage_unavailable", error=str(exc.orig or exc))
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    sweeper = getattr(app.state, "sweeper", None)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "gate": {"backend": settings.GATE_BACKEND, "type": type(get_gate()).__name__},
        "sweeper": {"running": bool(sweeper and sweeper.running)},
        "redis": await redis_status(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
