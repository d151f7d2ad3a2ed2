"""
Store (tenant) management for the signed-in user.

Access tokens are encrypted before they reach the session and are never
returned to callers.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storesync.integrations.shopify.client import normalize_shop_domain
from storesync.models import Tenant
from storesync.platform.secrets import encrypt_secret
from storesync.repositories.tenant_repo import TenantRepository

logger = logging.getLogger(__name__)


class StoreServiceError(Exception):
    """Base exception for store service errors."""
    pass


class StoreNotFoundError(StoreServiceError):
    """Store does not exist or belongs to another user."""

    def __init__(self, store_id: str):
        super().__init__("Store not found")
        self.store_id = store_id


class DuplicateStoreError(StoreServiceError):
    """The user already connected this Shopify domain."""

    def __init__(self, shopify_domain: str):
        super().__init__("You have already added this store")
        self.shopify_domain = shopify_domain


@dataclass
class StoreInfo:
    """Store details safe to return to the owner (no credentials)."""
    id: str
    store_name: str
    shopify_domain: str
    created_at: Optional[datetime]
    has_access_token: bool

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "StoreInfo":
        return cls(
            id=tenant.id,
            store_name=tenant.store_name,
            shopify_domain=tenant.shopify_domain,
            created_at=tenant.created_at,
            has_access_token=tenant.has_access_token,
        )


class StoreService:
    """
    Add, list, update and remove the user's connected stores.

    SECURITY: Every operation is scoped to user_id.
    """

    def __init__(self, db_session: Session, user_id: str, encrypt=encrypt_secret):
        if not user_id:
            raise ValueError("user_id is required and cannot be empty")

        self.db = db_session
        self.user_id = user_id
        self.repository = TenantRepository(db_session, user_id)
        self._encrypt = encrypt

    def add_store(
        self,
        store_name: str,
        shopify_domain: str,
        access_token: str,
        email: Optional[str] = None,
    ) -> StoreInfo:
        """
        Connect a store.

        Raises:
            ValueError: If a required field is empty
            DuplicateStoreError: If the user already added this domain
        """
        if not store_name or not shopify_domain or not access_token:
            raise ValueError("store_name, shopify_domain and access_token are required")

        domain = normalize_shop_domain(shopify_domain)
        if self.repository.find_by_domain(domain) is not None:
            raise DuplicateStoreError(domain)

        self.repository.ensure_user(email=email)
        tenant = Tenant(
            store_name=store_name.strip(),
            shopify_domain=domain,
            access_token_encrypted=self._encrypt(access_token),
        )
        try:
            self.repository.add(tenant)
            self.db.commit()
        except IntegrityError:
            # Concurrent add of the same domain
            self.db.rollback()
            raise DuplicateStoreError(domain)

        self.db.refresh(tenant)
        logger.info(
            "Store added",
            extra={"user_id": self.user_id, "tenant_id": tenant.id, "shop_domain": domain},
        )
        return StoreInfo.from_tenant(tenant)

    def list_stores(self) -> List[StoreInfo]:
        return [StoreInfo.from_tenant(t) for t in self.repository.list_all()]

    def update_store(
        self,
        store_id: str,
        store_name: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> StoreInfo:
        """
        Change the name and/or token; omitted fields keep their value.

        Raises:
            StoreNotFoundError: If the store is not the user's
        """
        tenant = self._get_owned(store_id)

        if store_name:
            tenant.store_name = store_name.strip()
        if access_token:
            tenant.access_token_encrypted = self._encrypt(access_token)

        self.db.commit()
        self.db.refresh(tenant)
        logger.info(
            "Store updated",
            extra={
                "user_id": self.user_id,
                "tenant_id": tenant.id,
                "name_changed": bool(store_name),
                "token_changed": bool(access_token),
            },
        )
        return StoreInfo.from_tenant(tenant)

    def delete_store(self, store_id: str) -> None:
        """
        Remove a store and, through cascades, all of its ingested rows.

        Raises:
            StoreNotFoundError: If the store is not the user's
        """
        tenant = self._get_owned(store_id)
        self.repository.delete(tenant)
        self.db.commit()
        logger.info("Store deleted", extra={"user_id": self.user_id, "tenant_id": store_id})

    def _get_owned(self, store_id: str) -> Tenant:
        tenant = self.repository.get(store_id)
        if tenant is None:
            raise StoreNotFoundError(store_id)
        return tenant
