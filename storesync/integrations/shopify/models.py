"""
Resource definitions for the Shopify Admin REST API.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class EntityKind(str, Enum):
    """Record collections ingested per store."""

    CUSTOMERS = "customers"
    PRODUCTS = "products"
    ORDERS = "orders"
    ABANDONED_CHECKOUTS = "abandoned_checkouts"


@dataclass(frozen=True)
class ResourceEndpoint:
    """
    How to list one entity kind.

    Attributes:
        path: Endpoint path relative to the versioned Admin API root
        response_key: Top-level key holding the records in each page
        params: Query parameters for the first page only; later pages
            are addressed entirely by the next link
    """

    path: str
    response_key: str
    params: Dict[str, str] = field(default_factory=dict)


# Maximum page size accepted by the Admin REST API
PAGE_LIMIT = 250

ENDPOINTS: Dict[EntityKind, ResourceEndpoint] = {
    EntityKind.PRODUCTS: ResourceEndpoint(
        path="products.json",
        response_key="products",
        params={"limit": str(PAGE_LIMIT)},
    ),
    EntityKind.ORDERS: ResourceEndpoint(
        path="orders.json",
        response_key="orders",
        params={"status": "any", "limit": str(PAGE_LIMIT)},
    ),
    EntityKind.CUSTOMERS: ResourceEndpoint(
        path="customers.json",
        response_key="customers",
        params={"limit": str(PAGE_LIMIT)},
    ),
    EntityKind.ABANDONED_CHECKOUTS: ResourceEndpoint(
        path="checkouts.json",
        response_key="checkouts",
        params={"limit": str(PAGE_LIMIT), "status": "any"},
    ),
}
