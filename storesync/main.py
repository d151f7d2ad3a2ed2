"""
FastAPI application entry point for storesync.

The Database handle is created and opened in the lifespan, stored on
app.state, and disposed at shutdown. Routes reach it through the
get_database / get_db_session dependencies.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storesync import __version__
from storesync.api.routes import health, ingestion, inventory, stores
from storesync.config.settings import (
    AuthSettings,
    DatabaseSettings,
    ShopifySettings,
    SyncSettings,
)
from storesync.database.session import Database

# Configure structured logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _database_from_env() -> Optional[Database]:
    try:
        settings = DatabaseSettings.from_env()
    except ValueError:
        logger.error("DATABASE_URL is not set. Database-backed endpoints will return 503.")
        return None
    return Database(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database at startup and dispose of it at shutdown."""
    logger.info("Starting storesync API", extra={"version": __version__})

    database = app.state.database
    owns_database = database is None
    if owns_database:
        database = _database_from_env()
        app.state.database = database

    if database is not None:
        database.open()
        logger.info("Database opened", extra={"dialect": database.dialect_name})

    if not app.state.auth_settings.jwt_secret:
        logger.warning("JWT_SECRET is not set. Authenticated endpoints will return 401.")

    yield

    logger.info("Shutting down storesync API")
    if owns_database and database is not None:
        database.close()


def create_app(
    database: Optional[Database] = None,
    auth_settings: Optional[AuthSettings] = None,
    sync_settings: Optional[SyncSettings] = None,
    shopify_settings: Optional[ShopifySettings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        database: Pre-built handle (tests); otherwise built from DATABASE_URL
            during startup
        auth_settings, sync_settings, shopify_settings: Override the
            environment-derived settings
    """
    app = FastAPI(
        title="storesync API",
        description="Multi-store Shopify data ingestion",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.database = database
    app.state.auth_settings = auth_settings or AuthSettings.from_env()
    app.state.sync_settings = sync_settings or SyncSettings.from_env()
    app.state.shopify_settings = shopify_settings or ShopifySettings.from_env()

    cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(stores.router)
    app.include_router(ingestion.router)
    app.include_router(inventory.router)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unhandled exceptions with proper logging."""
        logger.error(
            "Unhandled exception",
            extra={
                "error": str(exc),
                "error_type": type(exc).__name__,
                "path": request.url.path,
            },
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": "An unexpected error occurred",
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "storesync.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "development",
    )
