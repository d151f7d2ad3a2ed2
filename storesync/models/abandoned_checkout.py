"""
Abandoned checkout rows ingested from Shopify.
"""

from sqlalchemy import Column, Numeric, String, Text, UniqueConstraint

from storesync.models.base import Base, TenantScopedMixin, TimestampMixin, generate_uuid


class AbandonedCheckout(Base, TimestampMixin, TenantScopedMixin):
    """Shopify abandoned checkout, upserted by (shopify_id, tenant_id)."""

    __tablename__ = "abandoned_checkouts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    token = Column(String(255), nullable=True)
    cart_token = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    total_price = Column(Numeric(14, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=True)
    abandoned_checkout_url = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("shopify_id", "tenant_id", name="uq_abandoned_checkouts_shopify_tenant"),
    )

    def __repr__(self) -> str:
        return f"<AbandonedCheckout(id={self.id}, shopify_id={self.shopify_id})>"
