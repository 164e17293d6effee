"""FastAPI application factory.

Main entry point for the Mastery Log Web API. Run with:

    uvicorn mastery.web.api:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mastery import __version__
from mastery.db.database import Store, open_store
from mastery.web.routes import attempts_router, health_router, problems_router

logger = structlog.get_logger(__name__)


def create_app(store: Store | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Store to serve. When omitted, one is opened from config and
            closed on shutdown.

    Returns:
        Configured FastAPI app instance
    """
    owns_store = store is None
    app_store = store if store is not None else open_store()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for startup/shutdown events."""
        logger.info("api_startup", db_path=app_store.db_path)
        yield
        if owns_store:
            app_store.close()

    app = FastAPI(
        title="Mastery Log API",
        description="Log practice attempts and track mastery",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.store = app_store

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(attempts_router)
    app.include_router(problems_router)

    return app
