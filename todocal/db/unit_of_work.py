"""
Unit of Work pattern for transaction coordination.

Provides a clean way to work with multiple repositories within a single transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from todocal.db.repositories.completion import CompletionRepository
from todocal.db.repositories.task import TaskRepository
from todocal.db.repositories.user import UserRepository

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from todocal.db.connection import DatabaseConnection


class UnitOfWork:
    """
    Unit of Work for managing database transactions.

    Usage:
        with UnitOfWork(database) as uow:
            uow.tasks.create(document)
            uow.commit()  # Explicit commit

        # Auto-rollback on exception:
        with UnitOfWork(database) as uow:
            uow.completions.upsert(user_id, data)
            raise Exception("Something went wrong")
            # Transaction is automatically rolled back
    """

    def __init__(self, database: DatabaseConnection):
        self._database = database
        self._session: Session | None = None
        self._tasks: TaskRepository | None = None
        self._completions: CompletionRepository | None = None
        self._users: UserRepository | None = None

    def __enter__(self) -> UnitOfWork:
        self._session = self._database.get_session()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.rollback()
        self._close()
        return False  # Don't suppress exceptions

    @property
    def session(self) -> Session:
        """Get current session (raises if not in context)."""
        if self._session is None:
            raise RuntimeError("UnitOfWork must be used within a context manager")
        return self._session

    @property
    def tasks(self) -> TaskRepository:
        """Task repository for this unit of work."""
        if self._tasks is None:
            self._tasks = TaskRepository(self.session)
        return self._tasks

    @property
    def completions(self) -> CompletionRepository:
        """Completions repository for this unit of work."""
        if self._completions is None:
            self._completions = CompletionRepository(self.session)
        return self._completions

    @property
    def users(self) -> UserRepository:
        """User profile repository for this unit of work."""
        if self._users is None:
            self._users = UserRepository(self.session)
        return self._users

    def commit(self):
        """Commit the current transaction."""
        self.session.commit()

    def rollback(self):
        """Rollback the current transaction."""
        self.session.rollback()

    def _close(self):
        """Close the session."""
        if self._session is not None:
            self._session.close()
            self._session = None
            self._tasks = None
            self._completions = None
            self._users = None
