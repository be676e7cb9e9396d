"""Tests for TaskRepository query construction and row mapping."""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import UUID

from sqlalchemy.dialects import postgresql

from todocal.db.repositories.task import TaskRepository
from todocal.models.task import TaskDocument

DOC_ID = "12345678-1234-5678-1234-567812345678"
NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


def _executed_sql(session: MagicMock) -> str:
    stmt = session.execute.call_args.args[0]
    return _sql(stmt)


def _row(**overrides):
    row = MagicMock()
    row.id = UUID(DOC_ID)
    row.user_id = "u1"
    row.date_key = "2024-01-01"
    row.task = {"id": 1, "title": "X"}
    row.created_at = NOW
    row.updated_at = NOW
    for key, value in overrides.items():
        setattr(row, key, value)
    return row


class TestRowMapping:
    def test_row_to_model(self):
        repo = TaskRepository(MagicMock())

        document = repo._row_to_model(_row())

        assert document.id == DOC_ID
        assert document.user_id == "u1"
        assert document.date_key == "2024-01-01"
        assert document.task == {"id": 1, "title": "X"}
        assert document.task_id == 1

    def test_model_to_dict_generates_id(self):
        repo = TaskRepository(MagicMock())
        document = TaskDocument(id="", user_id="u1", date_key="2024-01-01", task={})

        data = repo._model_to_dict(document)

        assert isinstance(data["id"], UUID)
        assert data["user_id"] == "u1"
        assert data["task"] == {}

    def test_model_to_dict_keeps_id(self):
        repo = TaskRepository(MagicMock())
        document = TaskDocument(
            id=DOC_ID, user_id="u1", date_key="2024-01-01", task={"id": 5}
        )

        assert repo._model_to_dict(document)["id"] == UUID(DOC_ID)


class TestQueries:
    def test_get_by_user_scopes_by_user(self):
        session = MagicMock()
        session.execute.return_value.fetchall.return_value = [_row(), _row()]
        repo = TaskRepository(session)

        documents = repo.get_by_user("u1")

        assert len(documents) == 2
        sql = _executed_sql(session)
        assert "WHERE tasks.user_id = " in sql
        assert "ORDER BY" not in sql

    def test_get_bucket_sorted_orders_by_task_id(self):
        session = MagicMock()
        session.execute.return_value.fetchall.return_value = []
        repo = TaskRepository(session)

        repo.get_bucket_sorted("u1", "2024-01-01")

        sql = _executed_sql(session)
        assert "tasks.user_id" in sql
        assert "tasks.date_key" in sql
        order_by = sql.split("ORDER BY", 1)[1]
        assert order_by.index("jsonb_typeof") < order_by.index("CAST")
        assert "COLLATE" in order_by
        assert order_by.rstrip().endswith("tasks.created_at ASC")

    def test_bucket_ranks_id_types(self):
        repo = TaskRepository(MagicMock())
        type_rank = repo._task_id_order()[0]

        params = type_rank.compile(dialect=postgresql.dialect()).params

        # number, string, object, array, boolean ranks; anything else is 0
        assert sorted(v for v in params.values() if isinstance(v, int)) == [
            0, 1, 2, 3, 4, 5,
        ]
        assert {"number", "string", "object", "array", "boolean"} <= set(
            params.values()
        )

    def test_find_by_task_id_uses_containment(self):
        session = MagicMock()
        session.execute.return_value.fetchone.return_value = _row()
        repo = TaskRepository(session)

        document = repo.find_by_task_id("u1", "2024-01-01", 1)

        assert document is not None
        stmt = session.execute.call_args.args[0]
        sql = _sql(stmt)
        assert "tasks.user_id" in sql
        assert "tasks.task @>" in sql
        assert "LIMIT" in sql
        assert {"id": 1} in stmt.compile(dialect=postgresql.dialect()).params.values()

    def test_find_by_task_id_not_found(self):
        session = MagicMock()
        session.execute.return_value.fetchone.return_value = None
        repo = TaskRepository(session)

        assert repo.find_by_task_id("u1", "2024-01-01", "abc") is None

    def test_replace_task_is_scoped_to_owner(self):
        session = MagicMock()
        session.execute.return_value.rowcount = 1
        repo = TaskRepository(session)

        assert repo.replace_task(DOC_ID, "u1", {"id": 1, "title": "Y"}) is True
        sql = _executed_sql(session)
        assert sql.startswith("UPDATE tasks SET")
        assert "tasks.id = " in sql
        assert "tasks.user_id = " in sql

    def test_delete_for_user_missing_row(self):
        session = MagicMock()
        session.execute.return_value.rowcount = 0
        repo = TaskRepository(session)

        assert repo.delete_for_user(DOC_ID, "u1") is False
        sql = _executed_sql(session)
        assert sql.startswith("DELETE FROM tasks")
        assert "tasks.user_id = " in sql
