"""
Store management routes.

SECURITY: Every route is scoped to the authenticated user.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storesync.api.schemas.stores import (
    AddStoreRequest,
    MessageResponse,
    StoreListResponse,
    StoreMutationResponse,
    StoreResponse,
    UpdateStoreRequest,
)
from storesync.auth.dependencies import CurrentUser, get_current_user
from storesync.database.session import get_db_session
from storesync.services.store_service import (
    DuplicateStoreError,
    StoreInfo,
    StoreNotFoundError,
    StoreService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stores", tags=["stores"])


def _to_response(info: StoreInfo) -> StoreResponse:
    return StoreResponse(
        id=info.id,
        store_name=info.store_name,
        shopify_domain=info.shopify_domain,
        created_at=info.created_at,
    )


@router.post("", response_model=StoreMutationResponse, status_code=status.HTTP_201_CREATED)
def add_store(
    body: AddStoreRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Connect a Shopify store; the access token is stored encrypted."""
    service = StoreService(db, user.id)
    try:
        info = service.add_store(
            store_name=body.store_name,
            shopify_domain=body.shopify_domain,
            access_token=body.access_token,
            email=user.email,
        )
    except (DuplicateStoreError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return StoreMutationResponse(message="Store added successfully", store=_to_response(info))


@router.get("", response_model=StoreListResponse)
def list_stores(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    service = StoreService(db, user.id)
    return StoreListResponse(stores=[_to_response(s) for s in service.list_stores()])


@router.put("/{store_id}", response_model=StoreMutationResponse)
def update_store(
    store_id: str,
    body: UpdateStoreRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Rename a store and/or replace its access token."""
    service = StoreService(db, user.id)
    try:
        info = service.update_store(
            store_id,
            store_name=body.store_name,
            access_token=body.access_token,
        )
    except StoreNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return StoreMutationResponse(message="Store updated successfully", store=_to_response(info))


@router.delete("/{store_id}", response_model=MessageResponse)
def delete_store(
    store_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Remove a store together with all of its synced data."""
    service = StoreService(db, user.id)
    try:
        service.delete_store(store_id)
    except StoreNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return MessageResponse(message="Store deleted successfully")
