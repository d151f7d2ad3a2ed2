"""
Tests for the Shopify Admin REST client.

Uses httpx.MockTransport; no network access.
"""

import asyncio
import logging

import httpx
import pytest

from storesync.config.settings import ShopifySettings
from storesync.integrations.shopify import (
    EntityKind,
    ShopifyAPIError,
    ShopifyAuthenticationError,
    ShopifyClient,
    ShopifyConnectionError,
    ShopifyRateLimitError,
    get_shopify_client,
    normalize_shop_domain,
)
from storesync.platform.secrets import REDACTED_VALUE
from storesync.tests.helpers import TEST_ACCESS_TOKEN, TEST_SHOP_DOMAIN, shopify_transport

BASE = f"https://{TEST_SHOP_DOMAIN}/admin/api/2024-01"


def paged_transport(pages, link_for_page, requests):
    """Serve products pages; link_for_page(i) gives the Link header for page i."""
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        index = len(requests) - 1
        headers = {}
        link = link_for_page(index)
        if link:
            headers["Link"] = link
        return httpx.Response(200, json={"products": pages[index]}, headers=headers)
    return httpx.MockTransport(handler)


def make_client(transport) -> ShopifyClient:
    return ShopifyClient(TEST_SHOP_DOMAIN, TEST_ACCESS_TOKEN, transport=transport)


class TestNormalizeShopDomain:

    @pytest.mark.parametrize("raw", [
        "test-shop.myshopify.com",
        "https://test-shop.myshopify.com",
        "https://Test-Shop.myshopify.com/",
        "http://test-shop.myshopify.com/admin",
        "  test-shop.myshopify.com  ",
    ])
    def test_normalizes(self, raw):
        assert normalize_shop_domain(raw) == TEST_SHOP_DOMAIN


class TestShopifyClientInit:

    def test_requires_domain_and_token(self):
        with pytest.raises(ValueError):
            ShopifyClient("", TEST_ACCESS_TOKEN)
        with pytest.raises(ValueError):
            ShopifyClient(TEST_SHOP_DOMAIN, "")

    def test_base_url(self):
        client = ShopifyClient(f"https://{TEST_SHOP_DOMAIN}/", TEST_ACCESS_TOKEN, api_version="2024-04")
        assert client.base_url == f"https://{TEST_SHOP_DOMAIN}/admin/api/2024-04"

    def test_factory_uses_settings(self):
        client = get_shopify_client(
            TEST_SHOP_DOMAIN,
            TEST_ACCESS_TOKEN,
            settings=ShopifySettings(api_version="2023-10", timeout_seconds=5.0),
        )
        assert client.api_version == "2023-10"


class TestFetchAll:

    @pytest.mark.asyncio
    async def test_single_page_sends_token_and_first_page_params(self):
        requests = []
        transport = shopify_transport({"orders": [{"id": 1}, {"id": 2}]}, requests=requests)

        async with make_client(transport) as client:
            orders = await client.fetch_orders()

        assert orders == [{"id": 1}, {"id": 2}]
        assert len(requests) == 1
        request = requests[0]
        assert request.headers["X-Shopify-Access-Token"] == TEST_ACCESS_TOKEN
        assert request.url.path == "/admin/api/2024-01/orders.json"
        assert request.url.params["status"] == "any"
        assert request.url.params["limit"] == "250"

    @pytest.mark.asyncio
    async def test_follows_next_links_until_exhausted(self):
        requests = []
        pages = [[{"id": 1}, {"id": 2}], [{"id": 3}], [{"id": 4}]]
        links = {
            0: f'<{BASE}/products.json?limit=250&page_info=p2>; rel="next"',
            1: (
                f'<{BASE}/products.json?limit=250&page_info=p1>; rel="previous", '
                f'<{BASE}/products.json?limit=250&page_info=p3>; rel="next"'
            ),
        }
        transport = paged_transport(pages, links.get, requests)

        async with make_client(transport) as client:
            products = await client.fetch_products()

        assert [p["id"] for p in products] == [1, 2, 3, 4]
        assert len(requests) == 3
        assert requests[1].url.params["page_info"] == "p2"
        assert requests[2].url.params["page_info"] == "p3"

    @pytest.mark.asyncio
    async def test_missing_response_key_is_empty_page(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))

        async with make_client(transport) as client:
            assert await client.fetch_customers() == []

    @pytest.mark.asyncio
    async def test_malformed_next_link_ends_pagination(self):
        requests = []
        transport = paged_transport(
            [[{"id": 1}], [{"id": 2}]],
            lambda index: '<::not a url::>; rel="next"' if index == 0 else None,
            requests,
        )

        async with make_client(transport) as client:
            products = await client.fetch_products()

        assert products == [{"id": 1}]
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_foreign_host_next_link_ends_pagination(self):
        requests = []
        transport = paged_transport(
            [[{"id": 1}], [{"id": 2}]],
            lambda index: (
                '<https://attacker.example.com/products.json?page_info=x>; rel="next"'
                if index == 0 else None
            ),
            requests,
        )

        async with make_client(transport) as client:
            products = await client.fetch_products()

        assert products == [{"id": 1}]
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_checkouts_use_checkouts_key(self):
        transport = shopify_transport({"checkouts": [{"id": 9, "token": "abc"}]})

        async with make_client(transport) as client:
            checkouts = await client.fetch_abandoned_checkouts()

        assert checkouts == [{"id": 9, "token": "abc"}]


class TestErrorMapping:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_auth_failure(self, status_code):
        transport = shopify_transport({}, status_code=status_code)

        async with make_client(transport) as client:
            with pytest.raises(ShopifyAuthenticationError) as exc_info:
                await client.fetch_products()

        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(429, headers={"Retry-After": "2.0"}, json={})
        )

        async with make_client(transport) as client:
            with pytest.raises(ShopifyRateLimitError) as exc_info:
                await client.fetch_products()

        assert exc_info.value.retry_after == 2.0

    @pytest.mark.asyncio
    async def test_server_error(self):
        transport = shopify_transport({}, status_code=500)

        async with make_client(transport) as client:
            with pytest.raises(ShopifyAPIError) as exc_info:
                await client.fetch_orders()

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(httpx.MockTransport(handler)) as client:
            with pytest.raises(ShopifyConnectionError):
                await client.fetch_customers()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))

        async with make_client(transport) as client:
            with pytest.raises(ShopifyAPIError, match="Invalid JSON"):
                await client.fetch_products()

    @pytest.mark.asyncio
    async def test_error_body_is_scrubbed_before_logging(self, caplog):
        transport = httpx.MockTransport(lambda request: httpx.Response(
            500,
            json={"errors": "Internal error", "access_token": "shpat_leaked"},
        ))

        with caplog.at_level(logging.ERROR, logger="storesync.integrations.shopify.client"):
            async with make_client(transport) as client:
                with pytest.raises(ShopifyAPIError):
                    await client.fetch_orders()

        record = next(r for r in caplog.records if r.getMessage() == "Shopify API error")
        assert record.response == {"errors": "Internal error", "access_token": REDACTED_VALUE}


class TestFetchEverything:

    @pytest.mark.asyncio
    async def test_returns_all_kinds(self):
        transport = shopify_transport({
            "products": [{"id": 1}],
            "orders": [{"id": 2}, {"id": 3}],
            "customers": [],
            "checkouts": [{"id": 4}],
        })

        async with make_client(transport) as client:
            collections = await client.fetch_everything()

        assert set(collections) == set(EntityKind)
        assert len(collections[EntityKind.ORDERS]) == 2
        assert collections[EntityKind.CUSTOMERS] == []
        assert collections[EntityKind.ABANDONED_CHECKOUTS] == [{"id": 4}]

    @pytest.mark.asyncio
    async def test_any_failure_fails_whole_fetch(self):
        def handler(request):
            if request.url.path.endswith("orders.json"):
                return httpx.Response(502, json={})
            return httpx.Response(200, json={"products": [], "customers": [], "checkouts": []})

        async with make_client(httpx.MockTransport(handler)) as client:
            with pytest.raises(ShopifyAPIError):
                await client.fetch_everything()

    @pytest.mark.asyncio
    async def test_failure_cancels_fetches_still_in_flight(self):
        waiting = set()
        all_waiting = asyncio.Event()
        never = asyncio.Event()
        cancelled = set()

        async def handler(request):
            resource = request.url.path.rsplit("/", 1)[-1]
            if resource == "orders.json":
                await all_waiting.wait()
                return httpx.Response(500, json={"errors": "failure"})
            waiting.add(resource)
            if len(waiting) == 3:
                all_waiting.set()
            try:
                await never.wait()
            except asyncio.CancelledError:
                cancelled.add(resource)
                raise

        async with make_client(httpx.MockTransport(handler)) as client:
            with pytest.raises(ShopifyAPIError) as exc_info:
                await client.fetch_everything()

        assert exc_info.value.status_code == 500
        assert cancelled == {"products.json", "customers.json", "checkouts.json"}
