"""
Tenant model: one connected Shopify store.

CRITICAL DESIGN DECISIONS:
- A tenant belongs to exactly one user
- shopify_domain is unique per user (the same store may be connected
  by different users as separate tenants)
- access_token is encrypted at rest and decrypted only to build an
  API client
- Deleting a tenant cascades to every ingested row
"""

from sqlalchemy import Column, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from storesync.models.base import Base, TimestampMixin, generate_uuid


class Tenant(Base, TimestampMixin):
    """
    A Shopify store connected by a user.

    SECURITY:
    - access_token_encrypted must be decrypted only when making API calls
    - Every lookup is scoped by user_id
    """

    __tablename__ = "tenants"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        comment="UUID primary key"
    )
    store_name = Column(
        String(255),
        nullable=False,
        comment="Human readable store name"
    )
    shopify_domain = Column(
        String(255),
        nullable=False,
        comment="Shopify store domain (mystore.myshopify.com)"
    )
    access_token_encrypted = Column(
        Text,
        nullable=True,
        comment="Encrypted Shopify Admin API access token"
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning user"
    )

    user = relationship("User", back_populates="tenants")

    __table_args__ = (
        UniqueConstraint("user_id", "shopify_domain", name="uq_tenants_user_domain"),
        Index("ix_tenants_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Tenant(id={self.id}, store_name={self.store_name}, "
            f"shopify_domain={self.shopify_domain})>"
        )

    @property
    def has_access_token(self) -> bool:
        """Check if the store has a stored API credential."""
        return bool(self.access_token_encrypted)
