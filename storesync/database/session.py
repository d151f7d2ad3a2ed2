"""
Database handle with connection pooling.

The handle is constructed explicitly (normally in the FastAPI lifespan),
opened once at process start and closed at shutdown. Services receive it
as a constructor argument instead of importing a module-level engine.

Usage:
    database = Database(DatabaseSettings.from_env())
    database.open()

    with database.session() as session:
        session.query(Tenant).all()

    database.close()
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from fastapi import HTTPException, Request, status
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from storesync.config.settings import DatabaseSettings

logger = logging.getLogger(__name__)


class DatabaseNotOpenError(RuntimeError):
    """Raised when the handle is used before open() or after close()."""
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the engine and session factory for one process.

    Uses connection pooling with sensible defaults for production:
    - pool_size: 5 connections
    - max_overflow: 10 additional connections under load
    - pool_pre_ping: Verify connections before use
    """

    def __init__(self, settings: DatabaseSettings, engine: Optional[Engine] = None):
        self.settings = settings
        self._engine: Optional[Engine] = engine
        self._session_factory: Optional[sessionmaker] = None
        if engine is not None:
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DatabaseNotOpenError("Database handle is not open")
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def open(self) -> None:
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return

        url = self.settings.url
        if url.startswith("sqlite"):
            engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        else:
            engine = create_engine(
                url,
                poolclass=QueuePool,
                pool_size=self.settings.pool_size,
                max_overflow=self.settings.max_overflow,
                pool_pre_ping=True,  # Verify connection health
                pool_recycle=self.settings.pool_recycle_seconds,
            )

        self._engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(
            "Database engine created",
            extra={"dialect": engine.dialect.name, "pool_size": self.settings.pool_size},
        )

    def close(self) -> None:
        """Dispose of the engine and all pooled connections."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database engine disposed")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Yield a session that is always closed afterwards."""
        if self._session_factory is None:
            raise DatabaseNotOpenError("Database handle is not open")
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def ping(self) -> bool:
        """Run SELECT 1; return False on any database error."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", extra={"error": str(e)})
            return False


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the handle opened by the app lifespan."""
    database = getattr(request.app.state, "database", None)
    if database is None or not database.is_open:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured",
        )
    return database


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Creates a new session for each request and ensures proper cleanup.
    """
    database = get_database(request)
    with database.session() as session:
        yield session
