"""
User model.

A user owns zero or more tenants (connected Shopify stores). Credentials
and sessions are handled by the identity provider; this table only
anchors ownership.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from storesync.models.base import Base, TimestampMixin, generate_uuid


class User(Base, TimestampMixin):
    """Account that owns connected stores."""

    __tablename__ = "users"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        comment="UUID primary key"
    )
    email = Column(
        String(255),
        nullable=True,
        unique=True,
        index=True,
        comment="Login email"
    )
    name = Column(
        String(255),
        nullable=True,
        comment="Display name"
    )

    tenants = relationship(
        "Tenant",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
