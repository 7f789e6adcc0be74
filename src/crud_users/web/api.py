"""FastAPI application factory.

Main entry point for the users Web API. Startup order:
logging -> store -> migrations -> ready to serve. A failed migration
aborts startup and no route is ever served.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crud_users import __version__
from crud_users.config.app_config import AppConfig, load_app_config
from crud_users.core.user_service import UserService
from crud_users.db.migrations import run_migrations
from crud_users.db.store import Store, create_store
from crud_users.errors import MigrationFailure, StoreUnavailableError
from crud_users.utils.logger import configure_logging
from crud_users.web.routes import health_router, users_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config: AppConfig = app.state.config or load_app_config()
    app.state.config = config
    log_file = configure_logging(config.logging)

    owns_store = app.state.store is None

    try:
        store: Store = app.state.store or create_store(config.database)
        app.state.store = store
        applied = run_migrations(store, config.migrations_dir)
    except (MigrationFailure, StoreUnavailableError) as e:
        logger.error("api_startup_aborted", error=str(e))
        if owns_store and app.state.store is not None:
            app.state.store.close()
            app.state.store = None
        raise

    app.state.user_service = UserService(store)
    logger.info(
        "api_startup",
        store=repr(store),
        migrations_applied=applied,
        log_file=str(log_file) if log_file else None,
    )
    yield

    # Shutdown
    if owns_store:
        store.close()
        app.state.store = None
    logger.info("api_shutdown")


def create_app(config: AppConfig | None = None, store: Store | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config. If omitted, load_app_config() runs
            at startup, so importing this module never reads settings.
        store: Pre-built store handle. If omitted, the lifespan creates one
            from config.database and closes it on shutdown.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="CRUD Users API",
        description="Create, read, update and delete users",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(users_router)

    return app


# Default app instance for uvicorn
app = create_app()
