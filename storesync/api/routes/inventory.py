"""
Inventory status route.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storesync.api.schemas.inventory import (
    InventoryItemResponse,
    InventoryStatusResponse,
    VariantInventoryResponse,
)
from storesync.auth.dependencies import get_current_user_id
from storesync.database.session import get_db_session
from storesync.services.inventory_service import (
    InventoryItem,
    InventoryService,
    InventoryStoreNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def _to_response(item: InventoryItem) -> InventoryItemResponse:
    return InventoryItemResponse(
        id=item.id,
        name=item.name,
        type=item.type,
        total_inventory=item.total_inventory,
        variants=[VariantInventoryResponse(**v) for v in item.variants],
    )


@router.get("/status", response_model=InventoryStatusResponse)
def get_inventory_status(
    store_id: Optional[str] = Query(None, alias="storeId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db_session),
):
    """
    Products that are out of stock or running low.

    Covers one store when storeId is given, otherwise all of the caller's
    stores.
    """
    try:
        summary = InventoryService(db, user_id).get_status(store_id)
    except InventoryStoreNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return InventoryStatusResponse(
        out_of_stock=[_to_response(i) for i in summary.out_of_stock],
        low_stock=[_to_response(i) for i in summary.low_stock],
    )
