"""
Shared test doubles for the Shopify API and for sleeping.
"""

from typing import Callable, Dict, List, Optional

import httpx
import pytest

from storesync.integrations.shopify.client import ShopifyClient

TEST_SHOP_DOMAIN = "test-shop.myshopify.com"
TEST_ACCESS_TOKEN = "shpat_test_token"

PATH_TO_KEY = {
    "products.json": "products",
    "orders.json": "orders",
    "customers.json": "customers",
    "checkouts.json": "checkouts",
}


def shopify_transport(
    collections: Dict[str, List[dict]],
    requests: Optional[List[httpx.Request]] = None,
    status_code: int = 200,
) -> httpx.MockTransport:
    """
    MockTransport serving one page per collection.

    Args:
        collections: Response key ("products", "checkouts", ...) -> records
        requests: Optional list that receives every request made
        status_code: Status returned for every request
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"errors": "failure"})
        resource = request.url.path.rsplit("/", 1)[-1]
        key = PATH_TO_KEY[resource]
        return httpx.Response(200, json={key: collections.get(key, [])})

    return httpx.MockTransport(handler)


def client_factory_for(transport: httpx.MockTransport) -> Callable[[str, str], ShopifyClient]:
    def _factory(domain: str, token: str) -> ShopifyClient:
        return ShopifyClient(domain, token, transport=transport)
    return _factory


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and advances a clock."""

    def __init__(self):
        self.delays: List[float] = []
        self.now = 0.0

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.now += delay


def sqlite_total_changes(database) -> int:
    """
    Rows inserted, updated or deleted on the shared SQLite connection so far.

    Call only between transactions; returning the connection rolls back.
    """
    if database.dialect_name != "sqlite":
        pytest.skip("Write counting needs the SQLite test database")
    connection = database.engine.raw_connection()
    try:
        return connection.dbapi_connection.total_changes
    finally:
        connection.close()
