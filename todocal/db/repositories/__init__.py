"""
Repository implementations for the Todo Calendar database.

Repositories provide a clean interface for database CRUD operations,
encapsulating SQLAlchemy queries and Pydantic model conversions.
"""

from todocal.db.repositories.completion import CompletionRepository
from todocal.db.repositories.task import TaskRepository
from todocal.db.repositories.user import UserRepository

__all__ = [
    "CompletionRepository",
    "TaskRepository",
    "UserRepository",
]
