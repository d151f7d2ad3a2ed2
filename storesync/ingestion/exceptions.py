"""
Ingestion error taxonomy.

- TransientStoreError: infrastructure failure tagged with a
  TransientCondition where it was caught; the only error with_retry retries
- TenantNotFoundError, MissingCredentialsError: fatal for one tenant
- NoStoresError: the caller owns no stores, so a sync-all has nothing to do

Shopify API failures use the ShopifyAPIError family and are also fatal
for the tenant. Malformed records surface as plain KeyError/TypeError.
"""

from enum import Enum
from typing import Optional


class TransientCondition(str, Enum):
    """Closed set of infrastructure failures worth retrying."""
    CONNECTION_RESET = "connection_reset"
    CONNECTION_CLOSED = "connection_closed"
    CONNECTION_TERMINATED = "connection_terminated"
    TIMEOUT = "timeout"
    SERVER_UNREACHABLE = "server_unreachable"
    OPERATION_TIMED_OUT = "operation_timed_out"
    SERVER_CLOSED_CONNECTION = "server_closed_connection"


class IngestionError(Exception):
    """Base exception for ingestion errors."""
    pass


class TransientStoreError(IngestionError):
    """A database operation failed for a reason expected to clear on retry."""

    def __init__(self, condition: TransientCondition, message: Optional[str] = None):
        super().__init__(message or condition.value)
        self.condition = condition
        self.message = message or condition.value

    def __repr__(self) -> str:
        return f"TransientStoreError(condition={self.condition.value!r}, message={self.message!r})"


class TenantNotFoundError(IngestionError):
    """Tenant does not exist or does not belong to the caller."""

    def __init__(self, tenant_id: str):
        super().__init__(f"Store {tenant_id} not found")
        self.tenant_id = tenant_id


class MissingCredentialsError(IngestionError):
    """Tenant has no stored Shopify access token."""

    def __init__(self, tenant_id: str, message: str = "Missing access token"):
        super().__init__(message)
        self.tenant_id = tenant_id


class NoStoresError(IngestionError):
    """Caller owns no stores."""

    def __init__(self, user_id: str):
        super().__init__("No stores found to sync")
        self.user_id = user_id
