"""
Shopify Admin REST API integration.

Provides the paginated client used by the ingestion pipeline.
"""

from storesync.integrations.shopify.client import (
    ShopifyClient,
    get_shopify_client,
    normalize_shop_domain,
)
from storesync.integrations.shopify.exceptions import (
    ShopifyAPIError,
    ShopifyAuthenticationError,
    ShopifyConnectionError,
    ShopifyRateLimitError,
)
from storesync.integrations.shopify.models import (
    ENDPOINTS,
    PAGE_LIMIT,
    EntityKind,
    ResourceEndpoint,
)

__all__ = [
    # Client
    "ShopifyClient",
    "get_shopify_client",
    "normalize_shop_domain",
    # Exceptions
    "ShopifyAPIError",
    "ShopifyAuthenticationError",
    "ShopifyConnectionError",
    "ShopifyRateLimitError",
    # Models
    "ENDPOINTS",
    "PAGE_LIMIT",
    "EntityKind",
    "ResourceEndpoint",
]
