"""
Todo Calendar Database Module.

Provides database connection management and repositories for data persistence.
Uses SQLAlchemy Core with Cloud SQL Python Connector.
"""

from todocal.db.connection import DatabaseConnection
from todocal.db.unit_of_work import UnitOfWork

__all__ = ["DatabaseConnection", "UnitOfWork"]
