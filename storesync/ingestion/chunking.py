"""
Chunking of fetched collections into bounded batches.

Each chunk is persisted in one transaction, so chunk size bounds the
duration of that transaction. Orders use smaller chunks because every
order chunk also runs a customer lookup.
"""

from typing import Dict, List, Sequence, TypeVar

from storesync.integrations.shopify.models import EntityKind

T = TypeVar("T")

CHUNK_SIZES: Dict[EntityKind, int] = {
    EntityKind.CUSTOMERS: 50,
    EntityKind.PRODUCTS: 50,
    EntityKind.ORDERS: 20,
    EntityKind.ABANDONED_CHECKOUTS: 50,
}


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Split items into contiguous chunks of at most size elements.

    Returns ceil(len(items) / size) chunks in original order; the last one
    may be shorter. Empty input yields no chunks.

    Raises:
        ValueError: If size is not positive
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


def chunk_for(kind: EntityKind, items: Sequence[T]) -> List[List[T]]:
    """Chunk items with the size configured for kind."""
    return chunk(items, CHUNK_SIZES[kind])
