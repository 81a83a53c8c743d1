"""
Cleanbook - Main FastAPI Application
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cleanbook.api.routes.router import api_router
from cleanbook.config import get_settings
from cleanbook.database import close_db, init_db
from cleanbook.errors import register_exception_handlers
from cleanbook.logging import RequestIdMiddleware, setup_logging

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("app_starting", app=settings.APP_NAME, env=settings.NODE_ENV)
    await init_db()
    logger.info("database_initialized")

    yield

    await close_db()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Booking platform for a cleaning company: customers, staff, teams and assignments",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.APP_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers."""
        return {"status": "healthy", "service": settings.APP_NAME}

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app


app = create_app()
