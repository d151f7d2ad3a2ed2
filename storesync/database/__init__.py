from storesync.database.session import (
    Database,
    DatabaseNotOpenError,
    get_database,
    get_db_session,
)
from storesync.database.init_db import init_db

__all__ = ["Database", "DatabaseNotOpenError", "get_database", "get_db_session", "init_db"]
