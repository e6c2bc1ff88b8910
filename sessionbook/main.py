# sessionbook/main.py
"""
FastAPI application for the session booking service.

Run with:
    uvicorn sessionbook.main:app
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION
from .database import init_db
from .routes import health
from .routes.v1 import (
    availability as availability_v1,
    bookings as bookings_v1,
    grading as grading_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}, lane policy: {settings.lane_policy}")

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    else:
        init_db()

    yield

    logger.info(f"{API_TITLE} shutting down...")


def create_app() -> FastAPI:
    application = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(availability_v1.router)
    api_v1.include_router(bookings_v1.router)
    api_v1.include_router(grading_v1.router)

    application.include_router(api_v1)
    application.include_router(health.router)
    return application


app = create_app()

# Export what's needed
__all__ = ["app", "create_app"]
