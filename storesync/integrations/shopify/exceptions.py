"""
Shopify-specific exceptions for error handling.

Every error raised by the Shopify client is fatal for the tenant being
synced; none of them are retried.
"""

from typing import Optional


class ShopifyAPIError(Exception):
    """Base exception for Shopify Admin API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code})"


class ShopifyAuthenticationError(ShopifyAPIError):
    """Raised when the access token is rejected (401/403)."""

    def __init__(
        self,
        message: str = "Authentication failed - access token may be invalid or revoked",
        status_code: int = 401,
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)


class ShopifyRateLimitError(ShopifyAPIError):
    """Raised when the API rate limit is exceeded (429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        **kwargs,
    ):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class ShopifyConnectionError(ShopifyAPIError):
    """Raised when the store cannot be reached or the request times out."""

    def __init__(
        self,
        message: str = "Connection error - unable to reach Shopify",
        **kwargs,
    ):
        super().__init__(message, **kwargs)
