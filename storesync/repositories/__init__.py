"""
Data access layer.
"""

from storesync.repositories.ingestion_repo import IngestionRepository, classify_db_error
from storesync.repositories.tenant_repo import TenantRepository

__all__ = ["IngestionRepository", "TenantRepository", "classify_db_error"]
