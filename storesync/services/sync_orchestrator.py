"""
Sync orchestration for connected Shopify stores.

This service orchestrates:
- Single-store sync: fetch all four collections, then persist them
- Sync-all: every store of the caller, sequentially, with pacing
- Per-store failure isolation and outcome reporting

Pipeline per store:
    FETCHING -> SAVING_CUSTOMERS -> SAVING_PRODUCTS -> SAVING_ORDERS
    -> SAVING_CHECKOUTS -> DONE, or FAILED at any stage.

SECURITY: Stores are always looked up through the caller's user_id.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from storesync.config.settings import ShopifySettings, SyncSettings
from storesync.database.session import Database
from storesync.ingestion.exceptions import (
    MissingCredentialsError,
    NoStoresError,
    TenantNotFoundError,
)
from storesync.ingestion.retry import SleepFunc
from storesync.ingestion.upsert import UpsertResolver
from storesync.integrations.shopify.client import ShopifyClient, get_shopify_client
from storesync.integrations.shopify.models import EntityKind
from storesync.models import Tenant
from storesync.platform.secrets import EncryptionError, decrypt_secret, redact_value
from storesync.repositories.ingestion_repo import IngestionRepository
from storesync.repositories.tenant_repo import TenantRepository

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "Missing access token"

ClientFactory = Callable[[str, str], ShopifyClient]


class SyncStage(str, Enum):
    FETCHING = "fetching"
    SAVING_CUSTOMERS = "saving_customers"
    SAVING_PRODUCTS = "saving_products"
    SAVING_ORDERS = "saving_orders"
    SAVING_CHECKOUTS = "saving_checkouts"
    DONE = "done"
    FAILED = "failed"


# Customers first so orders can resolve their customer link
SAVE_ORDER = (
    (EntityKind.CUSTOMERS, SyncStage.SAVING_CUSTOMERS),
    (EntityKind.PRODUCTS, SyncStage.SAVING_PRODUCTS),
    (EntityKind.ORDERS, SyncStage.SAVING_ORDERS),
    (EntityKind.ABANDONED_CHECKOUTS, SyncStage.SAVING_CHECKOUTS),
)


@dataclass
class SyncStats:
    """Number of records fetched per collection."""
    products: int = 0
    orders: int = 0
    customers: int = 0
    abandoned_checkouts: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "products": self.products,
            "orders": self.orders,
            "customers": self.customers,
            "abandonedCheckouts": self.abandoned_checkouts,
        }


@dataclass
class TenantSyncResult:
    tenant_id: str
    store_name: str
    stats: SyncStats
    stage: SyncStage = SyncStage.DONE


@dataclass
class StoreSyncOutcome:
    store_name: str
    status: str
    error: Optional[str] = None
    tenant_id: Optional[str] = None

    @property
    def is_successful(self) -> bool:
        return self.status == "success"


@dataclass
class BulkSyncSummary:
    total_stores: int
    success_count: int
    fail_count: int
    results: List[StoreSyncOutcome] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Sync completed: {self.success_count} succeeded, {self.fail_count} failed"


@dataclass(frozen=True)
class _SyncTarget:
    """Detached snapshot of a tenant; no live ORM state crosses awaits."""
    tenant_id: str
    store_name: str
    shopify_domain: str
    access_token_encrypted: Optional[str]

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "_SyncTarget":
        return cls(
            tenant_id=tenant.id,
            store_name=tenant.store_name,
            shopify_domain=tenant.shopify_domain,
            access_token_encrypted=tenant.access_token_encrypted,
        )


class SyncOrchestrator:
    """
    Runs the fetch-then-persist pipeline for one or all of a user's stores.

    Provides:
    - sync_tenant: one store; errors propagate to the caller
    - sync_all_tenants: every store; errors are recorded per store

    The Database handle is passed in; the orchestrator opens short-lived
    sessions from it and never owns its lifecycle.
    """

    def __init__(
        self,
        database: Database,
        settings: Optional[SyncSettings] = None,
        client_factory: Optional[ClientFactory] = None,
        sleep: SleepFunc = asyncio.sleep,
        decrypt: Callable[[str], str] = decrypt_secret,
        shopify_settings: Optional[ShopifySettings] = None,
    ):
        """
        Initialize sync orchestrator.

        Args:
            database: Open database handle
            settings: Pipeline settings (pacing, statement timeouts)
            client_factory: Builds a ShopifyClient from (domain, token)
            sleep: Coroutine used for pacing and retry backoff
            decrypt: Decrypts stored access tokens
            shopify_settings: Used by the default client factory
        """
        self.database = database
        self.settings = settings or SyncSettings()
        self._sleep = sleep
        self._decrypt = decrypt

        if client_factory is None:
            shopify_settings = shopify_settings or ShopifySettings.from_env()

            def client_factory(domain: str, token: str) -> ShopifyClient:
                return get_shopify_client(domain, token, settings=shopify_settings)

        self._client_factory = client_factory

    async def sync_tenant(self, user_id: str, tenant_id: str) -> TenantSyncResult:
        """
        Sync one store owned by the user.

        Raises:
            TenantNotFoundError: Store missing or owned by someone else
            MissingCredentialsError: Store has no usable access token
            ShopifyAPIError: Fetching failed
            TransientStoreError: Persisting failed after retries
        """
        with self.database.session() as session:
            tenant = TenantRepository(session, user_id).get(tenant_id)
            if tenant is None:
                raise TenantNotFoundError(tenant_id)
            target = _SyncTarget.from_tenant(tenant)

        if not target.access_token_encrypted:
            raise MissingCredentialsError(target.tenant_id, MISSING_TOKEN_MESSAGE)

        return await self._run_pipeline(target)

    async def sync_all_tenants(self, user_id: str) -> BulkSyncSummary:
        """
        Sync every store of the user, one after another.

        Stores without a token are recorded as failed without contacting
        Shopify. Any other failure is recorded and the run continues with
        the next store. Fetches are spaced by tenant_pacing_seconds.

        Raises:
            NoStoresError: The user owns no stores
        """
        with self.database.session() as session:
            targets = [
                _SyncTarget.from_tenant(tenant)
                for tenant in TenantRepository(session, user_id).list_all()
            ]

        if not targets:
            raise NoStoresError(user_id)

        logger.info(
            "Starting sync for all stores",
            extra={"user_id": user_id, "store_count": len(targets)},
        )

        results: List[StoreSyncOutcome] = []
        fetched_before = False

        for target in targets:
            if not target.access_token_encrypted:
                results.append(StoreSyncOutcome(
                    store_name=target.store_name,
                    status="failed",
                    error=MISSING_TOKEN_MESSAGE,
                    tenant_id=target.tenant_id,
                ))
                continue

            if fetched_before and self.settings.tenant_pacing_seconds > 0:
                await self._sleep(self.settings.tenant_pacing_seconds)
            fetched_before = True

            try:
                await self._run_pipeline(target)
            except Exception as e:
                logger.error(
                    "Store sync failed",
                    extra={
                        "tenant_id": target.tenant_id,
                        "store_name": target.store_name,
                        "error_type": type(e).__name__,
                        "error": redact_value(str(e)),
                    },
                )
                results.append(StoreSyncOutcome(
                    store_name=target.store_name,
                    status="failed",
                    error=str(e) or type(e).__name__,
                    tenant_id=target.tenant_id,
                ))
                continue

            results.append(StoreSyncOutcome(
                store_name=target.store_name,
                status="success",
                tenant_id=target.tenant_id,
            ))

        success_count = sum(1 for r in results if r.is_successful)
        summary = BulkSyncSummary(
            total_stores=len(targets),
            success_count=success_count,
            fail_count=len(results) - success_count,
            results=results,
        )
        logger.info(
            "Sync for all stores finished",
            extra={
                "user_id": user_id,
                "total_stores": summary.total_stores,
                "success_count": summary.success_count,
                "fail_count": summary.fail_count,
            },
        )
        return summary

    def _access_token(self, target: _SyncTarget) -> str:
        try:
            return self._decrypt(target.access_token_encrypted)
        except (EncryptionError, ValueError) as e:
            logger.error(
                "Stored access token could not be decrypted",
                extra={"tenant_id": target.tenant_id, "error_type": type(e).__name__},
            )
            raise MissingCredentialsError(
                target.tenant_id, "Stored access token could not be decrypted"
            ) from e

    async def _run_pipeline(self, target: _SyncTarget) -> TenantSyncResult:
        stage = SyncStage.FETCHING
        log_context: Dict[str, Any] = {
            "tenant_id": target.tenant_id,
            "shop_domain": target.shopify_domain,
        }

        try:
            access_token = self._access_token(target)

            logger.info("Fetching store data", extra={**log_context, "stage": stage.value})
            async with self._client_factory(target.shopify_domain, access_token) as client:
                collections = await client.fetch_everything()

            stats = SyncStats(
                products=len(collections.get(EntityKind.PRODUCTS, [])),
                orders=len(collections.get(EntityKind.ORDERS, [])),
                customers=len(collections.get(EntityKind.CUSTOMERS, [])),
                abandoned_checkouts=len(collections.get(EntityKind.ABANDONED_CHECKOUTS, [])),
            )
            logger.info("Fetched store data", extra={**log_context, **stats.to_dict()})

            with self.database.session() as session:
                repository = IngestionRepository(session, target.tenant_id)
                resolver = UpsertResolver(repository, settings=self.settings, sleep=self._sleep)
                for kind, saving_stage in SAVE_ORDER:
                    stage = saving_stage
                    await resolver.save(kind, collections.get(kind, []))

        except Exception as e:
            logger.error(
                "Store pipeline failed",
                extra={
                    **log_context,
                    "stage": stage.value,
                    "outcome": SyncStage.FAILED.value,
                    "error_type": type(e).__name__,
                    "error": redact_value(str(e)),
                },
            )
            raise

        logger.info("Store sync completed", extra={**log_context, "stage": SyncStage.DONE.value})
        return TenantSyncResult(
            tenant_id=target.tenant_id,
            store_name=target.store_name,
            stats=stats,
        )
