"""
Tenant (connected store) lookups scoped by owning user.

CRITICAL: Every query filters on user_id. A tenant id that belongs to a
different user is indistinguishable from one that does not exist.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storesync.models import Tenant, User

logger = logging.getLogger(__name__)


class TenantRepository:
    """Read and write tenants on behalf of one user."""

    def __init__(self, db_session: Session, user_id: str):
        if not user_id:
            raise ValueError("user_id is required and cannot be empty")

        self.db_session = db_session
        self.user_id = user_id

    def list_all(self) -> List[Tenant]:
        """All tenants of the user, oldest first."""
        stmt = (
            select(Tenant)
            .where(Tenant.user_id == self.user_id)
            .order_by(Tenant.created_at, Tenant.id)
        )
        return list(self.db_session.execute(stmt).scalars())

    def get(self, tenant_id: str) -> Optional[Tenant]:
        stmt = select(Tenant).where(Tenant.id == tenant_id, Tenant.user_id == self.user_id)
        return self.db_session.execute(stmt).scalar_one_or_none()

    def find_by_domain(self, shopify_domain: str) -> Optional[Tenant]:
        stmt = select(Tenant).where(
            Tenant.shopify_domain == shopify_domain,
            Tenant.user_id == self.user_id,
        )
        return self.db_session.execute(stmt).scalar_one_or_none()

    def ensure_user(self, email: Optional[str] = None) -> User:
        """
        Return the user row, creating it on first use.

        Users are provisioned by the identity provider; the row only
        anchors tenant ownership.
        """
        user = self.db_session.get(User, self.user_id)
        if user is None:
            user = User(id=self.user_id, email=email)
            self.db_session.add(user)
            self.db_session.flush()
            logger.info("User row created", extra={"user_id": self.user_id})
        return user

    def add(self, tenant: Tenant) -> Tenant:
        tenant.user_id = self.user_id
        self.db_session.add(tenant)
        self.db_session.flush()
        return tenant

    def delete(self, tenant: Tenant) -> None:
        if tenant.user_id != self.user_id:
            raise ValueError("Cannot delete a tenant owned by another user")
        self.db_session.delete(tenant)
        self.db_session.flush()
