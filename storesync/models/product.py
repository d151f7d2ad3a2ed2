"""
Product rows ingested from Shopify.

Variants and images are kept as the JSON Shopify returns; they are
read-only projections and are not normalized into tables.
"""

from sqlalchemy import Column, String, Text, UniqueConstraint

from storesync.models.base import Base, JSONType, TenantScopedMixin, TimestampMixin, generate_uuid


class Product(Base, TimestampMixin, TenantScopedMixin):
    """Shopify product, upserted by (shopify_id, tenant_id)."""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(512), nullable=True)
    body_html = Column(Text, nullable=True)
    vendor = Column(String(255), nullable=True)
    product_type = Column(String(255), nullable=True)
    status = Column(String(32), nullable=True)
    tags = Column(Text, nullable=True)
    variants = Column(
        JSONType,
        nullable=True,
        comment="Variant list as returned by Shopify (inventory_quantity, sku, title)"
    )
    images = Column(JSONType, nullable=True)

    __table_args__ = (
        UniqueConstraint("shopify_id", "tenant_id", name="uq_products_shopify_tenant"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, shopify_id={self.shopify_id}, title={self.title})>"
