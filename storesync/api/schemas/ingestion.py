"""
Ingestion API schemas.

Wire names are camelCase; Python attributes are snake_case.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncStoreRequest(BaseModel):
    """Request to sync a single store."""
    model_config = ConfigDict(populate_by_name=True)

    store_id: str = Field(..., alias="storeId", min_length=1)


class SyncStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    products: int
    orders: int
    customers: int
    abandoned_checkouts: int = Field(..., alias="abandonedCheckouts")


class SyncStoreResponse(BaseModel):
    message: str
    stats: SyncStatsResponse


class StoreSyncResultResponse(BaseModel):
    """Outcome of one store in a sync-all run."""
    model_config = ConfigDict(populate_by_name=True)

    store_name: str = Field(..., alias="storeName")
    status: str
    error: Optional[str] = None


class SyncAllResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    total_stores: int = Field(..., alias="totalStores")
    success_count: int = Field(..., alias="successCount")
    fail_count: int = Field(..., alias="failCount")
    results: List[StoreSyncResultResponse]
