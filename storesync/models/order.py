"""
Order rows ingested from Shopify.

customer_id is resolved at ingestion time against customers already
persisted for the same tenant. Orders whose customer is unknown locally
are stored with customer_id NULL.
"""

from sqlalchemy import (
    Column, DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
)
from sqlalchemy.orm import relationship

from storesync.models.base import Base, JSONType, TenantScopedMixin, TimestampMixin, generate_uuid


class Order(Base, TimestampMixin, TenantScopedMixin):
    """Shopify order, upserted by (shopify_id, tenant_id)."""

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_number = Column(Integer, nullable=True)
    total_price = Column(Numeric(14, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=True)
    financial_status = Column(String(32), nullable=True)
    fulfillment_status = Column(String(32), nullable=True)
    line_items = Column(
        JSONType,
        nullable=True,
        comment="Line items as returned by Shopify (title, price, quantity)"
    )
    processed_at = Column(DateTime(timezone=True), nullable=True)
    customer_id = Column(
        String(36),
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Local customer resolved at ingestion time"
    )

    customer = relationship("Customer")

    __table_args__ = (
        UniqueConstraint("shopify_id", "tenant_id", name="uq_orders_shopify_tenant"),
        Index("ix_orders_tenant_processed", "tenant_id", "processed_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, shopify_id={self.shopify_id}, "
            f"customer_id={self.customer_id})>"
        )
