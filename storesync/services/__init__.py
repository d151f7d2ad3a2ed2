"""
Business logic services.
"""

from storesync.services.inventory_service import InventoryService, summarize_inventory
from storesync.services.store_service import StoreService
from storesync.services.sync_orchestrator import SyncOrchestrator

__all__ = ["InventoryService", "StoreService", "SyncOrchestrator", "summarize_inventory"]
