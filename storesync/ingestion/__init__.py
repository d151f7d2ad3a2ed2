"""
Shopify ingestion pipeline: chunking, retry and upsert resolution.
"""

from storesync.ingestion.chunking import CHUNK_SIZES, chunk, chunk_for
from storesync.ingestion.exceptions import (
    IngestionError,
    MissingCredentialsError,
    NoStoresError,
    TenantNotFoundError,
    TransientCondition,
    TransientStoreError,
)
from storesync.ingestion.retry import MAX_ATTEMPTS, INITIAL_DELAY_SECONDS, with_retry

__all__ = [
    "CHUNK_SIZES",
    "chunk",
    "chunk_for",
    "IngestionError",
    "MissingCredentialsError",
    "NoStoresError",
    "TenantNotFoundError",
    "TransientCondition",
    "TransientStoreError",
    "MAX_ATTEMPTS",
    "INITIAL_DELAY_SECONDS",
    "with_retry",
]
