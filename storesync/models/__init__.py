"""
Database models.

All ingested models are keyed by (shopify_id, tenant_id) and inherit
from TenantScopedMixin.
"""

from storesync.models.base import TimestampMixin, TenantScopedMixin
from storesync.models.user import User
from storesync.models.tenant import Tenant
from storesync.models.customer import Customer
from storesync.models.product import Product
from storesync.models.order import Order
from storesync.models.abandoned_checkout import AbandonedCheckout

__all__ = [
    "TimestampMixin",
    "TenantScopedMixin",
    "User",
    "Tenant",
    "Customer",
    "Product",
    "Order",
    "AbandonedCheckout",
]
