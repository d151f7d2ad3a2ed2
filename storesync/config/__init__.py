"""
Environment-driven configuration.
"""

from storesync.config.settings import (
    AuthSettings,
    DatabaseSettings,
    ShopifySettings,
    SyncSettings,
    normalize_database_url,
)

__all__ = [
    "AuthSettings",
    "DatabaseSettings",
    "ShopifySettings",
    "SyncSettings",
    "normalize_database_url",
]
