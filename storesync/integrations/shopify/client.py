"""
Shopify Admin REST API client.

This client handles:
- Authenticated access to one store with its Admin API access token
- Cursor pagination through the Link header's rel="next" URL
- Mapping HTTP failures onto ShopifyAPIError subclasses

Documentation: https://shopify.dev/docs/api/usage/pagination-rest
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from storesync.config.settings import ShopifySettings
from storesync.integrations.shopify.exceptions import (
    ShopifyAPIError,
    ShopifyAuthenticationError,
    ShopifyConnectionError,
    ShopifyRateLimitError,
)
from storesync.integrations.shopify.models import ENDPOINTS, EntityKind
from storesync.platform.secrets import redact_secrets, redact_value

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_API_VERSION = "2024-01"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0


def normalize_shop_domain(domain: str) -> str:
    """Strip scheme, path and trailing slash: https://x.myshopify.com/ -> x.myshopify.com."""
    cleaned = domain.strip()
    for prefix in ("https://", "http://"):
        if cleaned.lower().startswith(prefix):
            cleaned = cleaned[len(prefix):]
    return cleaned.split("/", 1)[0].lower()


class ShopifyClient:
    """
    Async client for one store's Admin REST API.

    All list operations return the complete collection as of call time.

    SECURITY: The access token must never be logged.
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Shopify client.

        Args:
            shop_domain: Store domain, with or without scheme
            access_token: Admin API access token
            api_version: Admin API version segment
            timeout: Request timeout in seconds
            connect_timeout: Connection timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not shop_domain:
            raise ValueError("shop_domain is required")
        if not access_token:
            raise ValueError("access_token is required")

        self.shop_domain = normalize_shop_domain(shop_domain)
        self.api_version = api_version
        self.base_url = f"https://{self.shop_domain}/admin/api/{api_version}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url + "/",
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ShopifyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        """
        GET one page.

        Raises:
            ShopifyAPIError: On any non-2xx response or transport failure
        """
        endpoint = url.split("?", 1)[0]

        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.error(
                "Shopify API timeout",
                extra={"shop_domain": self.shop_domain, "endpoint": endpoint, "error": str(e)},
            )
            raise ShopifyConnectionError(f"Request timeout: {e}", endpoint=endpoint)
        except httpx.RequestError as e:
            logger.error(
                "Shopify API connection error",
                extra={"shop_domain": self.shop_domain, "endpoint": endpoint, "error": str(e)},
            )
            raise ShopifyConnectionError(f"Connection error: {e}", endpoint=endpoint)

        if response.status_code in (401, 403):
            logger.error(
                "Shopify API authentication failed",
                extra={
                    "shop_domain": self.shop_domain,
                    "status_code": response.status_code,
                    "endpoint": endpoint,
                },
            )
            raise ShopifyAuthenticationError(status_code=response.status_code, endpoint=endpoint)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            logger.warning(
                "Shopify API rate limited",
                extra={
                    "shop_domain": self.shop_domain,
                    "endpoint": endpoint,
                    "retry_after": retry_after,
                },
            )
            try:
                retry_after_seconds = float(retry_after) if retry_after else None
            except ValueError:
                retry_after_seconds = None
            raise ShopifyRateLimitError(retry_after=retry_after_seconds, endpoint=endpoint)

        if not response.is_success:
            logger.error(
                "Shopify API error",
                extra={
                    "shop_domain": self.shop_domain,
                    "status_code": response.status_code,
                    "endpoint": endpoint,
                    "response": self._loggable_body(response),
                },
            )
            raise ShopifyAPIError(
                message=f"Shopify API error: {response.status_code}",
                status_code=response.status_code,
                endpoint=endpoint,
            )

        return response

    @staticmethod
    def _loggable_body(response: httpx.Response) -> Any:
        """Error body for logs: JSON scrubbed by key, otherwise truncated text."""
        try:
            return redact_secrets(response.json())
        except ValueError:
            return redact_value(response.text[:500])

    def _next_page_url(self, response: httpx.Response) -> Optional[str]:
        """
        Extract the rel="next" URL from the Link header.

        Returns None when there is no next page, or when the link is
        malformed or points away from this store; either case ends
        pagination with the records collected so far.
        """
        next_link = response.links.get("next")
        if not next_link:
            return None

        raw_url = next_link.get("url")
        if not raw_url:
            return None

        try:
            url = httpx.URL(raw_url)
        except httpx.InvalidURL:
            logger.warning(
                "Malformed next-page link, ending pagination",
                extra={"shop_domain": self.shop_domain, "link": raw_url[:200]},
            )
            return None

        if url.scheme not in ("http", "https") or url.host.lower() != self.shop_domain:
            logger.warning(
                "Next-page link points outside the store, ending pagination",
                extra={"shop_domain": self.shop_domain, "link_host": url.host},
            )
            return None

        return str(url)

    async def fetch_all(self, kind: EntityKind) -> List[Dict[str, Any]]:
        """
        Fetch every record of one entity kind, following pagination.

        Args:
            kind: Which collection to list

        Returns:
            All records in API order

        Raises:
            ShopifyAPIError: If any page fails; nothing is returned
        """
        endpoint = ENDPOINTS[kind]
        records: List[Dict[str, Any]] = []
        url: Optional[str] = endpoint.path
        params: Optional[Dict[str, str]] = dict(endpoint.params)
        pages = 0

        while url:
            response = await self._get(url, params=params)
            try:
                payload = response.json()
            except ValueError as e:
                raise ShopifyAPIError(
                    f"Invalid JSON from Shopify: {e}",
                    status_code=response.status_code,
                    endpoint=endpoint.path,
                )

            records.extend(payload.get(endpoint.response_key) or [])
            pages += 1

            url = self._next_page_url(response)
            # Next links carry their own query (page_info, limit)
            params = None

        logger.info(
            "Fetched Shopify collection",
            extra={
                "shop_domain": self.shop_domain,
                "entity_kind": kind.value,
                "pages": pages,
                "record_count": len(records),
            },
        )
        return records

    async def fetch_products(self) -> List[Dict[str, Any]]:
        return await self.fetch_all(EntityKind.PRODUCTS)

    async def fetch_orders(self) -> List[Dict[str, Any]]:
        return await self.fetch_all(EntityKind.ORDERS)

    async def fetch_customers(self) -> List[Dict[str, Any]]:
        return await self.fetch_all(EntityKind.CUSTOMERS)

    async def fetch_abandoned_checkouts(self) -> List[Dict[str, Any]]:
        return await self.fetch_all(EntityKind.ABANDONED_CHECKOUTS)

    async def fetch_everything(self) -> Dict[EntityKind, List[Dict[str, Any]]]:
        """
        Fetch all four collections concurrently.

        The fetches share no state, so they run under asyncio.gather. The
        first failure propagates and the whole result is discarded. The
        fetches still in flight are cancelled and awaited before that, so
        none outlives the client.
        """
        kinds = list(ENDPOINTS.keys())
        tasks = [asyncio.ensure_future(self.fetch_all(kind)) for kind in kinds]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            if pending:
                logger.info(
                    "Cancelled remaining Shopify fetches",
                    extra={"shop_domain": self.shop_domain, "cancelled": len(pending)},
                )
            raise
        return dict(zip(kinds, results))


def get_shopify_client(
    shop_domain: str,
    access_token: str,
    settings: Optional[ShopifySettings] = None,
) -> ShopifyClient:
    """
    Factory function to create a ShopifyClient.

    Args:
        shop_domain: Store domain
        access_token: Decrypted Admin API access token
        settings: Client settings (defaults from environment)

    Returns:
        Configured ShopifyClient instance
    """
    settings = settings or ShopifySettings.from_env()
    return ShopifyClient(
        shop_domain=shop_domain,
        access_token=access_token,
        api_version=settings.api_version,
        timeout=settings.timeout_seconds,
    )
