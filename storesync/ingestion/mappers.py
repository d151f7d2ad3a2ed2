"""
Mapping of Shopify REST records onto row dictionaries.

Rows contain model column names only; tenant_id and the primary key are
added by the repository. A record without an "id" raises KeyError, which
is a data error and is never retried.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Largest amount a Numeric(14, 2) money column holds
MAX_PRICE = Decimal("999999999999.99")


def parse_price(value: Any) -> Decimal:
    """
    Normalize a Shopify money field.

    Shopify sends prices as strings ("19.99"). Missing, malformed or
    non-finite values become 0, as do amounts too large for the money
    columns. Everything else is rounded to cents.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not price.is_finite():
        return ZERO
    if abs(price) > MAX_PRICE:
        logger.warning("Price out of range, stored as 0", extra={"value": str(value)[:64]})
        return ZERO
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp; return None when absent or malformed."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable timestamp", extra={"value": value[:64]})
        return None


def external_id(record: Dict[str, Any]) -> str:
    return str(record["id"])


def customer_row(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "shopify_id": external_id(record),
        "first_name": record.get("first_name"),
        "last_name": record.get("last_name"),
        "email": record.get("email"),
        "phone": record.get("phone"),
        "orders_count": parse_int(record.get("orders_count")),
        "total_spent": parse_price(record.get("total_spent")),
        "state": record.get("state"),
    }


def product_row(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "shopify_id": external_id(record),
        "title": record.get("title"),
        "body_html": record.get("body_html"),
        "vendor": record.get("vendor"),
        "product_type": record.get("product_type"),
        "status": record.get("status"),
        "tags": record.get("tags"),
        "variants": record.get("variants"),
        "images": record.get("images"),
    }


def order_customer_external_id(record: Dict[str, Any]) -> Optional[str]:
    """External id of the order's customer, if the order has one."""
    customer = record.get("customer")
    if not isinstance(customer, dict):
        return None
    customer_id = customer.get("id")
    return str(customer_id) if customer_id is not None else None


def order_row(record: Dict[str, Any], customer_id: Optional[str]) -> Dict[str, Any]:
    """
    Map an order.

    Args:
        record: Shopify order
        customer_id: Local customer primary key already resolved, or None
    """
    return {
        "shopify_id": external_id(record),
        "order_number": parse_int(record.get("order_number"), default=None),
        "total_price": parse_price(record.get("total_price")),
        "currency": record.get("currency"),
        "financial_status": record.get("financial_status"),
        "fulfillment_status": record.get("fulfillment_status"),
        "line_items": record.get("line_items"),
        "processed_at": parse_datetime(record.get("processed_at")),
        "customer_id": customer_id,
    }


def checkout_row(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "shopify_id": external_id(record),
        "token": record.get("token"),
        "cart_token": record.get("cart_token"),
        "email": record.get("email"),
        "total_price": parse_price(record.get("total_price")),
        "currency": record.get("currency"),
        "abandoned_checkout_url": record.get("abandoned_checkout_url"),
    }
