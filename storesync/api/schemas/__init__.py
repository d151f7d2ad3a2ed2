"""
API schemas package.

Contains Pydantic models for request/response validation.
"""

from storesync.api.schemas.ingestion import (
    StoreSyncResultResponse,
    SyncAllResponse,
    SyncStatsResponse,
    SyncStoreRequest,
    SyncStoreResponse,
)
from storesync.api.schemas.inventory import (
    InventoryItemResponse,
    InventoryStatusResponse,
    VariantInventoryResponse,
)
from storesync.api.schemas.stores import (
    AddStoreRequest,
    MessageResponse,
    StoreListResponse,
    StoreMutationResponse,
    StoreResponse,
    UpdateStoreRequest,
)

__all__ = [
    "StoreSyncResultResponse",
    "SyncAllResponse",
    "SyncStatsResponse",
    "SyncStoreRequest",
    "SyncStoreResponse",
    "InventoryItemResponse",
    "InventoryStatusResponse",
    "VariantInventoryResponse",
    "AddStoreRequest",
    "MessageResponse",
    "StoreListResponse",
    "StoreMutationResponse",
    "StoreResponse",
    "UpdateStoreRequest",
]
