"""
Ingestion API routes: sync one store or all of the caller's stores.

SECURITY: Stores are resolved through the authenticated user; a store id
owned by someone else is reported as not found.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from storesync.api.schemas.ingestion import (
    StoreSyncResultResponse,
    SyncAllResponse,
    SyncStatsResponse,
    SyncStoreRequest,
    SyncStoreResponse,
)
from storesync.auth.dependencies import get_current_user_id
from storesync.config.settings import ShopifySettings, SyncSettings
from storesync.database.session import Database, get_database
from storesync.ingestion.exceptions import (
    MissingCredentialsError,
    NoStoresError,
    TenantNotFoundError,
    TransientStoreError,
)
from storesync.integrations.shopify.exceptions import ShopifyAPIError
from storesync.services.sync_orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ingestion", tags=["ingestion"])


def get_sync_orchestrator(
    request: Request,
    database: Database = Depends(get_database),
) -> SyncOrchestrator:
    """Build an orchestrator over the app's database handle."""
    state = request.app.state
    return SyncOrchestrator(
        database,
        settings=getattr(state, "sync_settings", None) or SyncSettings.from_env(),
        shopify_settings=getattr(state, "shopify_settings", None) or ShopifySettings.from_env(),
    )


@router.post("/sync", response_model=SyncStoreResponse)
async def sync_store(
    body: SyncStoreRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """
    Fetch everything from one Shopify store and persist it.

    Returns the number of records fetched per collection.
    """
    logger.info(
        "Store sync requested",
        extra={"user_id": user_id, "tenant_id": body.store_id},
    )

    try:
        result = await orchestrator.sync_tenant(user_id, body.store_id)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except MissingCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShopifyAPIError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch data from Shopify: {e.message}",
        )
    except TransientStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Database temporarily unavailable: {e.condition.value}",
        )

    stats = result.stats
    return SyncStoreResponse(
        message="Sync completed successfully",
        stats=SyncStatsResponse(
            products=stats.products,
            orders=stats.orders,
            customers=stats.customers,
            abandoned_checkouts=stats.abandoned_checkouts,
        ),
    )


@router.post("/sync-all", response_model=SyncAllResponse, response_model_exclude_none=True)
async def sync_all_stores(
    user_id: str = Depends(get_current_user_id),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """
    Sync every store of the caller, one after another.

    Individual store failures are reported in results; the request itself
    only fails when the caller has no stores.
    """
    try:
        summary = await orchestrator.sync_all_tenants(user_id)
    except NoStoresError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return SyncAllResponse(
        message=summary.message,
        total_stores=summary.total_stores,
        success_count=summary.success_count,
        fail_count=summary.fail_count,
        results=[
            StoreSyncResultResponse(
                store_name=outcome.store_name,
                status=outcome.status,
                error=outcome.error,
            )
            for outcome in summary.results
        ],
    )
