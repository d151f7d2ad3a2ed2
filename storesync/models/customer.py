"""
Customer rows ingested from Shopify.
"""

from sqlalchemy import Column, Integer, Numeric, String, UniqueConstraint

from storesync.models.base import Base, TenantScopedMixin, TimestampMixin, generate_uuid


class Customer(Base, TimestampMixin, TenantScopedMixin):
    """Shopify customer, upserted by (shopify_id, tenant_id)."""

    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(64), nullable=True)
    orders_count = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Lifetime order count reported by Shopify"
    )
    total_spent = Column(
        Numeric(14, 2),
        nullable=False,
        default=0,
        comment="Lifetime spend reported by Shopify"
    )
    state = Column(String(32), nullable=True)

    __table_args__ = (
        UniqueConstraint("shopify_id", "tenant_id", name="uq_customers_shopify_tenant"),
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, shopify_id={self.shopify_id}, tenant_id={self.tenant_id})>"
