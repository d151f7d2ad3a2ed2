"""
Create all tables for the configured database.

Usage:
    DATABASE_URL=postgresql://... python -m storesync.database.init_db
"""

import logging

from storesync.config.settings import DatabaseSettings
from storesync.database.session import Database
from storesync.db_base import Base

# Register every model on Base.metadata
import storesync.models  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(database: Database) -> None:
    """Create missing tables; existing tables are left untouched."""
    Base.metadata.create_all(bind=database.engine)
    logger.info(
        "Database schema ensured",
        extra={"tables": sorted(Base.metadata.tables.keys())},
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    db = Database(DatabaseSettings.from_env())
    db.open()
    try:
        init_db(db)
    finally:
        db.close()
