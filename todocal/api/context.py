"""
Process-wide application context.

Built once in the FastAPI lifespan, kept on ``app.state.context`` and
injected into handlers with ``Depends(get_context)``. A context installed on
``app.state`` before startup is used as-is.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from fastapi import HTTPException, Request, status

from todocal.config import Settings
from todocal.db import DatabaseConnection, UnitOfWork
from todocal.models.user import IdentityClaims
from todocal.utils.google_auth import GoogleTokenVerifier
from todocal.utils.images import ProfileImageFetcher

logger = logging.getLogger(__name__)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> IdentityClaims: ...


@dataclass
class AppContext:
    """Shared handles used by every request."""

    settings: Settings
    database: DatabaseConnection
    verifier: TokenVerifier
    images: ProfileImageFetcher

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        """Create the context without opening any connections."""
        return cls(
            settings=settings,
            database=DatabaseConnection(settings),
            verifier=GoogleTokenVerifier(settings.google_client_id),
            images=ProfileImageFetcher(
                timeout=settings.image_download_timeout,
                max_bytes=settings.image_max_bytes,
                max_concurrent=settings.image_max_concurrent_downloads,
            ),
        )

    @property
    def database_available(self) -> bool:
        return self.database.is_connected

    def unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self.database)

    def start(self) -> bool:
        """
        Connect to the database if one is configured.

        Returns:
            True if the database is connected
        """
        if not self.settings.database_configured:
            logger.warning(
                "Database not configured (DATABASE_URL / INSTANCE_CONNECTION_NAME not set)"
            )
            return False

        try:
            self.database.connect()
            if self.settings.db_create_schema:
                self.database.create_schema()
        except Exception as e:
            logger.error(f"Database: Failed to connect - {e}")
            self.database.close()
            return False

        logger.info("Database: Connected")
        return True

    def stop(self):
        if self.database.is_connected:
            self.database.close()
            logger.info("Database: Connection closed")


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the application context."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return context


def check_db_available(context: AppContext):
    """Raise 503 if the database is not connected."""
    if not context.database_available:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not available",
        )
