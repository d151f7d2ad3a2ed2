"""
Base mixins for database models.

Provides common functionality:
- TimestampMixin: created_at, updated_at timestamps
- TenantScopedMixin: tenant_id and shopify_id for ingested records
- generate_uuid: UUID generation for primary keys
- JSONType: JSONB on PostgreSQL, JSON elsewhere
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declared_attr

from storesync.db_base import Base

# Use JSONB for PostgreSQL, JSON for other databases (testing)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def generate_uuid() -> str:
    """Generate a UUID4 string for use as a primary key default."""
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Timestamp when record was last updated"
    )


class TenantScopedMixin:
    """
    Mixin for rows ingested from a store.

    Every ingested row is keyed by (shopify_id, tenant_id). Subclasses
    declare the matching UniqueConstraint in __table_args__ so that
    re-ingesting a record updates it in place.
    """

    @declared_attr
    def tenant_id(cls):
        return Column(
            String(36),
            ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            comment="Owning tenant (connected store)"
        )

    @declared_attr
    def shopify_id(cls):
        return Column(
            String(64),
            nullable=False,
            comment="Identifier of the record in Shopify"
        )


__all__ = ["Base", "JSONType", "TimestampMixin", "TenantScopedMixin", "generate_uuid"]
