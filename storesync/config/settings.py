"""
Runtime configuration loaded from environment variables.

Each concern gets a frozen dataclass with sensible defaults so that
services can be constructed in tests without touching the environment.

Usage:
    from storesync.config.settings import SyncSettings

    settings = SyncSettings.from_env()
    await asyncio.sleep(settings.tenant_pacing_seconds)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Defaults
DEFAULT_POOL_SIZE = 5
DEFAULT_MAX_OVERFLOW = 10
DEFAULT_POOL_RECYCLE_SECONDS = 1800
DEFAULT_SHOPIFY_API_VERSION = "2024-01"
DEFAULT_SHOPIFY_TIMEOUT_SECONDS = 30.0
DEFAULT_TENANT_PACING_SECONDS = 2.0
DEFAULT_SIMPLE_BATCH_TIMEOUT_SECONDS = 30.0
DEFAULT_ORDER_BATCH_TIMEOUT_SECONDS = 60.0


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(
            "Invalid integer in environment, using default",
            extra={"variable": name, "default": default},
        )
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(
            "Invalid number in environment, using default",
            extra={"variable": name, "default": default},
        )
        return default


def normalize_database_url(database_url: str) -> str:
    """
    Normalize a database URL for SQLAlchemy.

    Handles the postgres:// scheme used by hosting providers and pins the
    psycopg (v3) driver for plain postgresql:// URLs.
    """
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return database_url


@dataclass(frozen=True)
class DatabaseSettings:
    """Relational store connection settings."""

    url: str
    pool_size: int = DEFAULT_POOL_SIZE
    max_overflow: int = DEFAULT_MAX_OVERFLOW
    pool_recycle_seconds: int = DEFAULT_POOL_RECYCLE_SECONDS

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        database_url = os.getenv("DATABASE_URL")
        if not database_url:
            raise ValueError("DATABASE_URL environment variable is not set")
        return cls(
            url=normalize_database_url(database_url),
            pool_size=_env_int("DB_POOL_SIZE", DEFAULT_POOL_SIZE),
            max_overflow=_env_int("DB_MAX_OVERFLOW", DEFAULT_MAX_OVERFLOW),
            pool_recycle_seconds=_env_int("DB_POOL_RECYCLE_SECONDS", DEFAULT_POOL_RECYCLE_SECONDS),
        )


@dataclass(frozen=True)
class ShopifySettings:
    """Shopify Admin API client settings."""

    api_version: str = DEFAULT_SHOPIFY_API_VERSION
    timeout_seconds: float = DEFAULT_SHOPIFY_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "ShopifySettings":
        return cls(
            api_version=os.getenv("SHOPIFY_API_VERSION") or DEFAULT_SHOPIFY_API_VERSION,
            timeout_seconds=_env_float("SHOPIFY_TIMEOUT_SECONDS", DEFAULT_SHOPIFY_TIMEOUT_SECONDS),
        )


@dataclass(frozen=True)
class SyncSettings:
    """
    Ingestion pipeline settings.

    Attributes:
        tenant_pacing_seconds: Delay between tenants in a sync-all run
        simple_batch_timeout_seconds: Statement timeout for customer,
            product and checkout chunks
        order_batch_timeout_seconds: Statement timeout for order chunks,
            which also run the customer lookup
    """

    tenant_pacing_seconds: float = DEFAULT_TENANT_PACING_SECONDS
    simple_batch_timeout_seconds: float = DEFAULT_SIMPLE_BATCH_TIMEOUT_SECONDS
    order_batch_timeout_seconds: float = DEFAULT_ORDER_BATCH_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "SyncSettings":
        return cls(
            tenant_pacing_seconds=_env_float(
                "SYNC_TENANT_PACING_SECONDS", DEFAULT_TENANT_PACING_SECONDS
            ),
            simple_batch_timeout_seconds=_env_float(
                "SYNC_BATCH_TIMEOUT_SECONDS", DEFAULT_SIMPLE_BATCH_TIMEOUT_SECONDS
            ),
            order_batch_timeout_seconds=_env_float(
                "SYNC_ORDER_BATCH_TIMEOUT_SECONDS", DEFAULT_ORDER_BATCH_TIMEOUT_SECONDS
            ),
        )


@dataclass(frozen=True)
class AuthSettings:
    """Bearer token verification settings."""

    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"

    @classmethod
    def from_env(cls) -> "AuthSettings":
        return cls(
            jwt_secret=os.getenv("JWT_SECRET"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM") or "HS256",
        )
