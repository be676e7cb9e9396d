"""
Task repository for database operations.

Every query is filtered by user_id so one user can never read or modify
another user's tasks.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Numeric, Table, case, cast, func, select

from todocal.db.repositories.base import BaseRepository
from todocal.db.tables import tasks
from todocal.models.task import TaskDocument, TaskId


class TaskRepository(BaseRepository[TaskDocument]):
    """Repository for task documents."""

    @property
    def table(self) -> Table:
        return tasks

    def _row_to_model(self, row: Any) -> TaskDocument:
        """Convert database row to TaskDocument model."""
        return TaskDocument(
            id=str(row.id),
            user_id=row.user_id,
            date_key=row.date_key,
            task=row.task or {},
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _model_to_dict(self, model: TaskDocument) -> dict:
        """Convert TaskDocument model to database dict."""
        return {
            "id": UUID(model.id) if model.id else uuid4(),
            "user_id": model.user_id,
            "date_key": model.date_key,
            "task": model.task,
            "created_at": model.created_at,
            "updated_at": model.updated_at,
        }

    def _match_task_id(self, task_id: TaskId):
        # JSONB containment matches numeric and string ids alike
        return self.table.c.task.contains({"id": task_id})

    def _task_id_order(self) -> list:
        """
        Sort keys for a date bucket, ascending by task id.

        Ids are ranked by type first: missing or null, then numbers, strings,
        objects, arrays and booleans. Numbers compare by value and strings
        byte-wise; creation time breaks ties.
        """
        task_id = self.table.c.task["id"]
        id_type = func.jsonb_typeof(task_id)
        type_rank = case(
            (id_type == "number", 1),
            (id_type == "string", 2),
            (id_type == "object", 3),
            (id_type == "array", 4),
            (id_type == "boolean", 5),
            else_=0,
        )
        number_value = case((id_type == "number", cast(task_id.astext, Numeric)))
        string_value = case((id_type == "string", task_id.astext.collate("C")))
        # Missing and null ids tie, so only structured ids compare as JSONB
        other_value = case((type_rank >= 3, task_id))
        return [
            type_rank,
            number_value,
            string_value,
            other_value,
            self.table.c.created_at.asc(),
        ]

    def get_by_user(self, user_id: str) -> list[TaskDocument]:
        """
        Get all task documents for a user, in store order.

        Args:
            user_id: Owner ID

        Returns:
            List of task documents (unbounded)
        """
        stmt = select(self.table).where(self.table.c.user_id == user_id)
        result = self.session.execute(stmt)
        return [self._row_to_model(row) for row in result.fetchall()]

    def get_bucket_sorted(self, user_id: str, date_key: str) -> list[TaskDocument]:
        """
        Get the tasks of one date bucket ordered by task id ascending.

        This ordering defines the positions used by positional delete.
        """
        stmt = (
            select(self.table)
            .where(
                self.table.c.user_id == user_id,
                self.table.c.date_key == date_key,
            )
            .order_by(*self._task_id_order())
        )
        result = self.session.execute(stmt)
        return [self._row_to_model(row) for row in result.fetchall()]

    def find_by_task_id(
        self, user_id: str, date_key: str, task_id: TaskId
    ) -> TaskDocument | None:
        """
        Find the document holding a task with the given client id.

        If callers created duplicates, the oldest one is returned.

        Returns:
            TaskDocument or None if not found
        """
        stmt = (
            select(self.table)
            .where(
                self.table.c.user_id == user_id,
                self.table.c.date_key == date_key,
                self._match_task_id(task_id),
            )
            .order_by(self.table.c.created_at.asc())
            .limit(1)
        )
        row = self.session.execute(stmt).fetchone()

        if row is None:
            return None

        return self._row_to_model(row)

    def replace_task(
        self, document_id: str, user_id: str, task: dict[str, Any]
    ) -> bool:
        """
        Replace the task payload of a document and refresh updated_at.

        Returns:
            True if the document was updated, False if it no longer exists
        """
        return self.update_by_key(
            UUID(document_id),
            self.table.c.user_id == user_id,
            task=task,
            updated_at=datetime.now(timezone.utc),
        )

    def delete_for_user(self, document_id: str, user_id: str) -> bool:
        """
        Delete a task document owned by user_id.

        Returns:
            True if deleted, False if it no longer exists
        """
        return self.delete_by_key(UUID(document_id), self.table.c.user_id == user_id)
