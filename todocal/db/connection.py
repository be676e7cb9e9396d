"""
Database connection management.

Supports Cloud SQL (Python Connector with IAM authentication) and plain
PostgreSQL URLs, both through a bounded SQLAlchemy connection pool.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from google.cloud.sql.connector import Connector
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from todocal.config import Settings
from todocal.db.tables import metadata

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Owns the connection pool for one process.

    An instance is created at application startup and handed to request
    handlers through the application context, never stored in a module
    global.

    Usage:
        database = DatabaseConnection(settings)
        database.connect()

        with database.session() as session:
            session.execute(...)

        database.close()
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._engine: Engine | None = None
        self._connector: Connector | None = None
        self._session_factory: sessionmaker | None = None

    def connect(self):
        """
        Open the connection pool.

        Uses the Cloud SQL connector when INSTANCE_CONNECTION_NAME is set,
        otherwise DATABASE_URL.

        Raises:
            ValueError: If neither is configured or IAM auth lacks DB_USER
        """
        if self._engine is not None:
            return

        settings = self._settings
        pool_options = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout,
            "pool_recycle": settings.db_pool_recycle,
            "pool_pre_ping": True,  # Verify connections before use
        }

        if settings.instance_connection_name:
            if not settings.db_user:
                raise ValueError(
                    "DB_USER environment variable is required. "
                    "Should be service account email for IAM auth."
                )

            self._connector = Connector()
            connector = self._connector
            instance_connection_name = settings.instance_connection_name

            def getconn():
                return connector.connect(
                    instance_connection_name,
                    "pg8000",
                    user=settings.db_user,
                    db=settings.db_name,
                    enable_iam_auth=True,
                    timeout=settings.db_connect_timeout,
                )

            self._engine = create_engine(
                "postgresql+pg8000://", creator=getconn, **pool_options
            )
            logger.info(f"Connecting to Cloud SQL instance {instance_connection_name}")
        elif settings.database_url:
            self._engine = create_engine(
                settings.database_url,
                connect_args={"timeout": settings.db_connect_timeout},
                **pool_options,
            )
            logger.info("Connecting to database from DATABASE_URL")
        else:
            raise ValueError(
                "DATABASE_URL or INSTANCE_CONNECTION_NAME environment variable "
                "is required."
            )

        self._session_factory = sessionmaker(bind=self._engine)

    def create_schema(self):
        """Create missing tables and indexes. Existing ones are left alone."""
        metadata.create_all(self.engine)

    @property
    def engine(self) -> Engine:
        """Get the SQLAlchemy engine."""
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    @property
    def is_connected(self) -> bool:
        """Check if the connection pool is open."""
        return self._engine is not None

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions.

        Automatically commits on success and rolls back on exception.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Session:
        """
        Get a new database session.

        The caller is responsible for committing/rolling back and closing the
        session. Prefer session() or UnitOfWork for automatic lifecycle.
        """
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._session_factory()

    def close(self):
        """Dispose of the pool and the Cloud SQL connector."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

        if self._connector:
            self._connector.close()
            self._connector = None

        self._session_factory = None
