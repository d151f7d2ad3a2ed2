"""
Chunked, retried persistence of one tenant's fetched collections.

For each entity kind the collection is chunked, each chunk is mapped to
rows and written as a single transaction through with_retry. Orders
resolve their customer link inside the same transaction with one lookup
per chunk.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from storesync.config.settings import SyncSettings
from storesync.ingestion.chunking import chunk_for
from storesync.ingestion.mappers import (
    checkout_row,
    customer_row,
    order_customer_external_id,
    order_row,
    product_row,
)
from storesync.ingestion.retry import SleepFunc, with_retry
from storesync.integrations.shopify.models import EntityKind
from storesync.repositories.ingestion_repo import IngestionRepository

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def build_order_rows(
    records: Sequence[Record],
    customer_ids: Dict[str, str],
) -> List[Record]:
    """
    Map orders, linking each to its local customer when known.

    Args:
        records: Shopify orders
        customer_ids: Shopify customer id -> local customer id

    Returns:
        Rows with customer_id set, or None for unknown customers
    """
    rows = []
    for record in records:
        external_customer = order_customer_external_id(record)
        rows.append(order_row(record, customer_ids.get(external_customer) if external_customer else None))
    return rows


class UpsertResolver:
    """
    Persists collections for the tenant its repository is scoped to.

    Each chunk is all-or-nothing. A chunk that still fails after retries
    raises, and chunks already committed stay committed.
    """

    def __init__(
        self,
        repository: IngestionRepository,
        settings: Optional[SyncSettings] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.repository = repository
        self.tenant_id = repository.tenant_id
        self.settings = settings or SyncSettings()
        self._sleep = sleep

    async def save(self, kind: EntityKind, records: Sequence[Record]) -> int:
        """Persist a whole collection; returns the number of rows written."""
        writers: Dict[EntityKind, Callable[[Sequence[Record]], int]] = {
            EntityKind.CUSTOMERS: self._write_customers,
            EntityKind.PRODUCTS: self._write_products,
            EntityKind.ORDERS: self._write_orders,
            EntityKind.ABANDONED_CHECKOUTS: self._write_checkouts,
        }
        write = writers[kind]
        chunks = chunk_for(kind, records)
        written = 0

        for index, batch in enumerate(chunks):
            written += await with_retry(
                lambda batch=batch: write(batch),
                sleep=self._sleep,
                description=f"upsert {kind.value} chunk {index + 1}/{len(chunks)}",
            )

        logger.info(
            "Collection saved",
            extra={
                "tenant_id": self.tenant_id,
                "entity_kind": kind.value,
                "record_count": len(records),
                "chunk_count": len(chunks),
                "rows_written": written,
            },
        )
        return written

    async def save_customers(self, records: Sequence[Record]) -> int:
        return await self.save(EntityKind.CUSTOMERS, records)

    async def save_products(self, records: Sequence[Record]) -> int:
        return await self.save(EntityKind.PRODUCTS, records)

    async def save_orders(self, records: Sequence[Record]) -> int:
        return await self.save(EntityKind.ORDERS, records)

    async def save_abandoned_checkouts(self, records: Sequence[Record]) -> int:
        return await self.save(EntityKind.ABANDONED_CHECKOUTS, records)

    def _write_customers(self, batch: Sequence[Record]) -> int:
        with self.repository.transaction(self.settings.simple_batch_timeout_seconds):
            return self.repository.upsert_customers([customer_row(r) for r in batch])

    def _write_products(self, batch: Sequence[Record]) -> int:
        with self.repository.transaction(self.settings.simple_batch_timeout_seconds):
            return self.repository.upsert_products([product_row(r) for r in batch])

    def _write_checkouts(self, batch: Sequence[Record]) -> int:
        with self.repository.transaction(self.settings.simple_batch_timeout_seconds):
            return self.repository.upsert_abandoned_checkouts([checkout_row(r) for r in batch])

    def _write_orders(self, batch: Sequence[Record]) -> int:
        referenced = {
            external_id
            for external_id in (order_customer_external_id(r) for r in batch)
            if external_id
        }
        with self.repository.transaction(self.settings.order_batch_timeout_seconds):
            customer_ids = self.repository.lookup_customer_ids(referenced)
            rows = build_order_rows(batch, customer_ids)
            written = self.repository.upsert_orders(rows)

        logger.debug(
            "Order chunk written",
            extra={
                "tenant_id": self.tenant_id,
                "order_count": len(rows),
                "customers_referenced": len(referenced),
                "customers_resolved": len(customer_ids),
            },
        )
        return written
