"""
storesync - multi-tenant Shopify ingestion and analytics backend.
"""

__version__ = "0.1.0"
