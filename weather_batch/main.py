"""
Main FastAPI application for the weather batch service.

This module contains the FastAPI application instance, the operator and
result routers, and the root and health endpoints.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from weather_batch import __version__
from weather_batch.config import settings
from weather_batch.database import create_tables
from weather_batch.routers.batch import router as batch_router
from weather_batch.routers.results import router as results_router
from weather_batch.routers.status import router as status_router
from weather_batch.routers.weather import router as weather_router
from weather_batch.utils.logging_config import get_logger, setup_logging

# Import all models to ensure SQLAlchemy relationships are properly configured
import weather_batch.models  # noqa: F401

setup_logging()
logger = get_logger(__name__)

limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Creates missing tables on startup. Production Postgres deployments
    should still run `alembic upgrade head` before starting.
    """
    logger.info("=" * 60)
    logger.info(f"{settings.SERVER_NAME} - Application starting up")
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"Database: {settings.SQLALCHEMY_DATABASE_URI.split('://')[0]}")
    logger.info(f"Cities: {', '.join(settings.CITY_CODES)}")
    logger.info("=" * 60)

    await create_tables()

    if not settings.is_api_key_configured:
        logger.warning("WEATHER_API_KEY is not set; the collection job is disabled")

    yield

    logger.info("=" * 60)
    logger.info(f"{settings.SERVER_NAME} - Application shutting down")
    logger.info("=" * 60)


app = FastAPI(
    title=settings.SERVER_NAME,
    description="Batch pipeline that collects city weather, builds daily statistics and issues weather alerts",
    version=__version__,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.get("/")
@limiter.limit(f"{settings.RATE_LIMIT_REQUESTS}/{settings.RATE_LIMIT_WINDOW}seconds")
async def root(request: Request):
    """
    Root endpoint returning API information.
    """
    return {
        "message": f"Welcome to {settings.SERVER_NAME}",
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
@limiter.limit("60/minute")
async def health_check(request: Request):
    """
    Health check endpoint.

    Rate limit: 60 requests per minute
    """
    return {"status": "healthy"}


app.include_router(status_router, prefix=settings.API_V1_STR)
app.include_router(batch_router, prefix=settings.API_V1_STR)
app.include_router(weather_router, prefix=settings.API_V1_STR)
app.include_router(results_router, prefix=settings.API_V1_STR)
