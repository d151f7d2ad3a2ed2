"""
Inventory status over persisted product variants.

A product is tracked when at least one variant reports a non-null
inventory_quantity. Tracked products totalling 0 are out of stock;
totals from 1 to LOW_STOCK_THRESHOLD are low stock.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from storesync.models import Product
from storesync.repositories.tenant_repo import TenantRepository

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 5
NOT_AVAILABLE = "N/A"


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator


def _quantity(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class InventoryItem:
    id: str
    name: Optional[str]
    type: str
    total_inventory: int
    variants: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "totalInventory": self.total_inventory,
            "variants": self.variants,
        }


@dataclass
class InventorySummary:
    out_of_stock: List[InventoryItem] = field(default_factory=list)
    low_stock: List[InventoryItem] = field(default_factory=list)
    tracked_products: int = 0

    @property
    def out_of_stock_rate(self) -> float:
        """Share of tracked products that are out of stock."""
        return safe_ratio(len(self.out_of_stock), self.tracked_products)


def summarize_inventory(products: Iterable[Product]) -> InventorySummary:
    """Bucket products by total tracked inventory."""
    summary = InventorySummary()

    for product in products:
        variants = product.variants
        if not isinstance(variants, list):
            continue

        tracked = [
            v for v in variants
            if isinstance(v, dict) and v.get("inventory_quantity") is not None
        ]
        if not tracked:
            continue

        summary.tracked_products += 1
        total = sum(_quantity(v.get("inventory_quantity")) for v in tracked)
        item = InventoryItem(
            id=product.id,
            name=product.title,
            type=product.product_type or NOT_AVAILABLE,
            total_inventory=total,
            variants=[
                {
                    "title": v.get("title"),
                    "inventory": _quantity(v.get("inventory_quantity")),
                    "sku": v.get("sku") or NOT_AVAILABLE,
                }
                for v in variants
                if isinstance(v, dict)
            ],
        )

        if total == 0:
            summary.out_of_stock.append(item)
        elif 0 < total <= LOW_STOCK_THRESHOLD:
            summary.low_stock.append(item)

    return summary


class InventoryServiceError(Exception):
    """Base exception for inventory service errors."""
    pass


class InventoryStoreNotFoundError(InventoryServiceError):
    """Requested store is not one of the caller's."""

    def __init__(self, store_id: str):
        super().__init__("Store not found")
        self.store_id = store_id


class InventoryService:
    """Inventory status across the user's stores."""

    def __init__(self, db_session: Session, user_id: str):
        self.db = db_session
        self.user_id = user_id
        self.tenants = TenantRepository(db_session, user_id)

    def get_status(self, store_id: Optional[str] = None) -> InventorySummary:
        """
        Summarize one store, or all of the user's stores when store_id is None.

        Raises:
            InventoryStoreNotFoundError: store_id is not the user's
        """
        if store_id:
            if self.tenants.get(store_id) is None:
                raise InventoryStoreNotFoundError(store_id)
            tenant_ids: Sequence[str] = [store_id]
        else:
            tenant_ids = [t.id for t in self.tenants.list_all()]

        if not tenant_ids:
            return InventorySummary()

        stmt = (
            select(Product)
            .where(Product.tenant_id.in_(tenant_ids))
            .order_by(Product.created_at, Product.id)
        )
        summary = summarize_inventory(self.db.execute(stmt).scalars())
        logger.debug(
            "Inventory summarized",
            extra={
                "user_id": self.user_id,
                "store_count": len(tenant_ids),
                "tracked_products": summary.tracked_products,
                "out_of_stock": len(summary.out_of_stock),
                "low_stock": len(summary.low_stock),
            },
        )
        return summary
