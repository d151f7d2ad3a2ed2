"""
Tenant-scoped persistence for ingested Shopify records.

CRITICAL: Every statement is scoped to the repository's tenant_id. Row
dicts never carry their own tenant_id; the repository always sets it.

Database failures are classified here, where they are caught, and
re-raised as TransientStoreError when retrying can help.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterable, List, Optional, Sequence

import psycopg
from psycopg import errors as pg_errors
from sqlalchemy import func, or_, select, text
from sqlalchemy import exc as sa_exc
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from storesync.ingestion.exceptions import TransientCondition, TransientStoreError
from storesync.models import AbandonedCheckout, Customer, Order, Product
from storesync.models.base import generate_uuid

logger = logging.getLogger(__name__)

CONFLICT_KEY = ("shopify_id", "tenant_id")

CUSTOMER_COLUMNS = (
    "first_name", "last_name", "email", "phone", "orders_count", "total_spent", "state",
)
PRODUCT_COLUMNS = (
    "title", "body_html", "vendor", "product_type", "status", "tags", "variants", "images",
)
ORDER_COLUMNS = (
    "order_number", "total_price", "currency", "financial_status", "fulfillment_status",
    "line_items", "processed_at", "customer_id",
)
CHECKOUT_COLUMNS = (
    "token", "cart_token", "email", "total_price", "currency", "abandoned_checkout_url",
)


def classify_db_error(error: BaseException) -> Optional[TransientCondition]:
    """
    Tag a database failure with a transient condition, or None if fatal.

    Classification is by exception type only: pool checkout timeouts,
    statement timeouts, server shutdowns, dropped connections and
    unreachable servers are transient. Constraint violations, bad SQL and
    anything unrecognized are not.
    """
    if isinstance(error, sa_exc.TimeoutError):
        return TransientCondition.TIMEOUT

    if isinstance(error, sa_exc.DBAPIError):
        orig = error.orig
        if isinstance(orig, pg_errors.QueryCanceled):
            return TransientCondition.OPERATION_TIMED_OUT
        if isinstance(orig, (pg_errors.AdminShutdown, pg_errors.CrashShutdown)):
            return TransientCondition.CONNECTION_TERMINATED
        if isinstance(orig, pg_errors.CannotConnectNow):
            return TransientCondition.SERVER_UNREACHABLE
        if error.connection_invalidated:
            return TransientCondition.SERVER_CLOSED_CONNECTION
        if isinstance(orig, ConnectionResetError):
            return TransientCondition.CONNECTION_RESET
        if isinstance(orig, psycopg.OperationalError):
            return TransientCondition.SERVER_UNREACHABLE
        return None

    if isinstance(error, sa_exc.DisconnectionError):
        return TransientCondition.CONNECTION_CLOSED
    if isinstance(error, ConnectionResetError):
        return TransientCondition.CONNECTION_RESET
    if isinstance(error, TimeoutError):
        return TransientCondition.TIMEOUT
    return None


class IngestionRepository:
    """
    Upserts and lookups for one tenant's ingested rows.

    Upserts are INSERT ... ON CONFLICT (shopify_id, tenant_id) DO UPDATE,
    and only touch rows whose values actually differ, so re-ingesting an
    unchanged collection writes nothing.
    """

    def __init__(self, db_session: Session, tenant_id: str):
        """
        Initialize repository with tenant context.

        Raises:
            ValueError: If tenant_id is empty or None
        """
        if not tenant_id:
            raise ValueError("tenant_id is required and cannot be empty")

        self.db_session = db_session
        self.tenant_id = tenant_id

    @property
    def dialect_name(self) -> str:
        return self.db_session.get_bind().dialect.name

    @contextmanager
    def transaction(self, timeout_seconds: Optional[float] = None) -> Generator[None, None, None]:
        """
        Run the enclosed statements as one transaction.

        Commits on success and rolls back on any error. Database errors
        that classify as transient are re-raised as TransientStoreError;
        everything else propagates unchanged.

        Args:
            timeout_seconds: Statement timeout applied for this transaction
                (PostgreSQL only)
        """
        try:
            if timeout_seconds:
                self._apply_statement_timeout(timeout_seconds)
            yield
            self.db_session.commit()
        except Exception as e:
            self._rollback_quietly()
            condition = classify_db_error(e)
            if condition is None:
                raise
            logger.warning(
                "Transient database failure",
                extra={
                    "tenant_id": self.tenant_id,
                    "condition": condition.value,
                    "error": str(e)[:500],
                },
            )
            raise TransientStoreError(condition, str(e)) from e

    def _rollback_quietly(self) -> None:
        try:
            self.db_session.rollback()
        except sa_exc.SQLAlchemyError as rollback_error:
            logger.warning(
                "Rollback failed",
                extra={"tenant_id": self.tenant_id, "error": str(rollback_error)},
            )

    def _apply_statement_timeout(self, timeout_seconds: float) -> None:
        if self.dialect_name != "postgresql":
            return
        timeout_ms = int(timeout_seconds * 1000)
        # SET does not accept bind parameters; value is an int we computed
        self.db_session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))

    def _insert(self, model):
        if self.dialect_name == "postgresql":
            return postgresql.insert(model)
        if self.dialect_name == "sqlite":
            return sqlite.insert(model)
        raise NotImplementedError(f"Upsert not supported for dialect {self.dialect_name}")

    def _upsert(self, model, rows: Sequence[Dict[str, Any]], update_columns: Iterable[str]) -> int:
        if not rows:
            return 0

        # One statement may not touch the same conflict key twice; last copy wins
        latest: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            latest.pop(row["shopify_id"], None)
            latest[row["shopify_id"]] = row

        values = [
            {**row, "id": generate_uuid(), "tenant_id": self.tenant_id}
            for row in latest.values()
        ]
        stmt = self._insert(model).values(values)
        table = model.__table__
        update_columns = list(update_columns)

        set_ = {column: stmt.excluded[column] for column in update_columns}
        set_["updated_at"] = func.now()

        stmt = stmt.on_conflict_do_update(
            index_elements=list(CONFLICT_KEY),
            set_=set_,
            where=or_(*(
                table.c[column].is_distinct_from(stmt.excluded[column])
                for column in update_columns
            )),
        )
        self.db_session.execute(stmt)

        logger.debug(
            "Upserted rows",
            extra={"tenant_id": self.tenant_id, "table": table.name, "row_count": len(values)},
        )
        return len(values)

    def upsert_customers(self, rows: Sequence[Dict[str, Any]]) -> int:
        return self._upsert(Customer, rows, CUSTOMER_COLUMNS)

    def upsert_products(self, rows: Sequence[Dict[str, Any]]) -> int:
        return self._upsert(Product, rows, PRODUCT_COLUMNS)

    def upsert_orders(self, rows: Sequence[Dict[str, Any]]) -> int:
        return self._upsert(Order, rows, ORDER_COLUMNS)

    def upsert_abandoned_checkouts(self, rows: Sequence[Dict[str, Any]]) -> int:
        return self._upsert(AbandonedCheckout, rows, CHECKOUT_COLUMNS)

    def lookup_customer_ids(self, shopify_ids: Iterable[str]) -> Dict[str, str]:
        """
        Map Shopify customer ids to local customer ids for this tenant.

        Only ids present locally appear in the result; an empty input runs
        no query.
        """
        wanted: List[str] = sorted(set(shopify_ids))
        if not wanted:
            return {}

        stmt = select(Customer.shopify_id, Customer.id).where(
            Customer.tenant_id == self.tenant_id,
            Customer.shopify_id.in_(wanted),
        )
        return {shopify_id: local_id for shopify_id, local_id in self.db_session.execute(stmt)}

    def count(self, model) -> int:
        """Number of rows of model stored for this tenant."""
        stmt = select(func.count()).select_from(model).where(model.tenant_id == self.tenant_id)
        return self.db_session.execute(stmt).scalar_one()
