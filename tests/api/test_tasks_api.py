"""
Tests for task API endpoints.

These tests run full request flows against the in-memory context, so
create/list/update/delete interact the same way they do against PostgreSQL.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from fakes import AUTH_HEADERS, TEST_USER_ID
from todocal.models.task import TaskDocument


def _create(client: TestClient, date_key: str, task: dict) -> str:
    response = client.post(
        "/api/tasks", headers=AUTH_HEADERS, json={"dateKey": date_key, "task": task}
    )
    assert response.status_code == 200
    return response.json()["id"]


def _delete(client: TestClient, body: dict):
    return client.request("DELETE", "/api/tasks", headers=AUTH_HEADERS, json=body)


class TestListTasks:
    """Tests for GET /api/tasks endpoint."""

    def test_list_empty(self, client: TestClient):
        response = client.get("/api/tasks", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {}

    def test_list_groups_by_date_key(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})
        _create(client, "2024-01-01", {"id": 2, "title": "B"})
        _create(client, "2024-01-02", {"id": 3, "title": "C"})

        data = client.get("/api/tasks", headers=AUTH_HEADERS).json()

        assert data["2024-01-01"] == [
            {"id": 1, "title": "A"},
            {"id": 2, "title": "B"},
        ]
        assert data["2024-01-02"] == [{"id": 3, "title": "C"}]
        assert "completions" not in data

    def test_list_includes_completions(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})
        client.post(
            "/api/completions",
            headers=AUTH_HEADERS,
            json={"completions": {"2024-01-01": {"1": True}}},
        )

        data = client.get("/api/tasks", headers=AUTH_HEADERS).json()

        assert data["completions"] == {"2024-01-01": {"1": True}}
        assert data["2024-01-01"] == [{"id": 1, "title": "A"}]

    def test_list_only_returns_own_tasks(self, client: TestClient, context):
        context.store.tasks.append(
            TaskDocument(
                id="f1b4a7ce-0000-4000-8000-000000000001",
                user_id="someone-else",
                date_key="2024-01-01",
                task={"id": 99, "title": "Private"},
            )
        )
        _create(client, "2024-01-01", {"id": 1, "title": "Mine"})

        data = client.get("/api/tasks", headers=AUTH_HEADERS).json()

        assert data == {"2024-01-01": [{"id": 1, "title": "Mine"}]}

    def test_list_requires_token(self, client: TestClient):
        response = client.get("/api/tasks")

        assert response.status_code == 401
        assert response.json() == {"error": "Access token required"}

    def test_list_store_failure_returns_500(self, client: TestClient, context):
        with patch(
            "fakes.InMemoryTaskRepository.get_by_user",
            side_effect=OperationalError("SELECT", {}, Exception("timeout")),
        ):
            response = client.get("/api/tasks", headers=AUTH_HEADERS)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch tasks"}


class TestCreateTask:
    """Tests for POST /api/tasks endpoint."""

    def test_create_then_list(self, client: TestClient, context):
        response = client.post(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "task": {"id": 1, "title": "X"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Task saved successfully"
        assert len(data["id"]) == 36  # UUID format

        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert listing["2024-01-01"] == [{"id": 1, "title": "X"}]

        stored = context.store.tasks[0]
        assert stored.id == data["id"]
        assert stored.user_id == TEST_USER_ID

    def test_create_allows_duplicate_task_ids(self, client: TestClient):
        first = _create(client, "2024-01-01", {"id": 1, "title": "X"})
        second = _create(client, "2024-01-01", {"id": 1, "title": "X"})

        assert first != second
        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert len(listing["2024-01-01"]) == 2

    def test_create_missing_date_key(self, client: TestClient):
        response = client.post(
            "/api/tasks", headers=AUTH_HEADERS, json={"task": {"id": 1}}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "dateKey and task are required"}

    def test_create_empty_date_key(self, client: TestClient):
        response = client.post(
            "/api/tasks", headers=AUTH_HEADERS, json={"dateKey": "", "task": {"id": 1}}
        )

        assert response.status_code == 400

    def test_create_missing_task(self, client: TestClient):
        response = client.post(
            "/api/tasks", headers=AUTH_HEADERS, json={"dateKey": "2024-01-01"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "dateKey and task are required"}

    def test_create_non_object_task(self, client: TestClient):
        response = client.post(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "task": "not an object"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body"}

    def test_create_invalid_token(self, client: TestClient):
        response = client.post(
            "/api/tasks",
            headers={"Authorization": "Bearer forged"},
            json={"dateKey": "2024-01-01", "task": {"id": 1}},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Invalid or expired token"}

    def test_create_database_unavailable(self, client: TestClient, context):
        context.database.is_connected = False

        response = client.post(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "task": {"id": 1}},
        )

        assert response.status_code == 503
        assert response.json() == {"error": "Database not available"}


class TestUpdateTask:
    """Tests for PUT /api/tasks endpoint."""

    def test_update_replaces_task(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "X"})

        response = client.put(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={
                "dateKey": "2024-01-01",
                "taskIndex": 0,
                "task": {"id": 1, "title": "Y", "done": True},
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Task updated successfully",
        }
        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert listing["2024-01-01"] == [{"id": 1, "title": "Y", "done": True}]

    def test_update_is_idempotent(self, client: TestClient, context):
        _create(client, "2024-01-01", {"id": 1, "title": "X"})
        body = {"dateKey": "2024-01-01", "taskIndex": 0, "task": {"id": 1, "title": "Y"}}

        client.put("/api/tasks", headers=AUTH_HEADERS, json=body)
        first = [(d.id, d.date_key, d.task) for d in context.store.tasks]
        client.put("/api/tasks", headers=AUTH_HEADERS, json=body)
        second = [(d.id, d.date_key, d.task) for d in context.store.tasks]

        assert first == second

    def test_update_ignores_task_index(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})
        _create(client, "2024-01-01", {"id": 2, "title": "B"})

        response = client.put(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "taskIndex": 0, "task": {"id": 2, "title": "B2"}},
        )

        assert response.status_code == 200
        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert listing["2024-01-01"] == [
            {"id": 1, "title": "A"},
            {"id": 2, "title": "B2"},
        ]

    def test_update_not_found(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "X"})

        response = client.put(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-02", "taskIndex": 0, "task": {"id": 1}},
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_update_task_without_id_not_found(self, client: TestClient):
        _create(client, "2024-01-01", {"title": "No id"})

        response = client.put(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "taskIndex": 0, "task": {"title": "Z"}},
        )

        assert response.status_code == 404

    def test_update_other_users_task_not_found(self, client: TestClient, context):
        context.store.tasks.append(
            TaskDocument(
                id="f1b4a7ce-0000-4000-8000-000000000002",
                user_id="someone-else",
                date_key="2024-01-01",
                task={"id": 1, "title": "Private"},
            )
        )

        response = client.put(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "taskIndex": 0, "task": {"id": 1}},
        )

        assert response.status_code == 404
        assert context.store.tasks[0].task == {"id": 1, "title": "Private"}

    def test_update_requires_task_index(self, client: TestClient):
        response = client.put(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "task": {"id": 1}},
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "dateKey, taskIndex, and task are required"
        }

    def test_update_accepts_null_task_index(self, client: TestClient, context):
        _create(client, "2024-01-01", {"id": 1, "title": "X"})

        response = client.put(
            "/api/tasks",
            headers=AUTH_HEADERS,
            json={"dateKey": "2024-01-01", "taskIndex": None, "task": {"id": 1, "title": "Y"}},
        )

        assert response.status_code == 200
        assert context.store.tasks[0].task == {"id": 1, "title": "Y"}

    def test_update_without_body(self, client: TestClient):
        response = client.put("/api/tasks", headers=AUTH_HEADERS)

        assert response.status_code == 400
        assert response.json() == {
            "error": "dateKey, taskIndex, and task are required"
        }

    def test_update_vanished_between_find_and_replace(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "X"})

        with patch("fakes.InMemoryTaskRepository.replace_task", return_value=False):
            response = client.put(
                "/api/tasks",
                headers=AUTH_HEADERS,
                json={"dateKey": "2024-01-01", "taskIndex": 0, "task": {"id": 1}},
            )

        assert response.status_code == 404


class TestDeleteTask:
    """Tests for DELETE /api/tasks endpoint."""

    def test_delete_by_index_uses_task_id_order(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 3, "title": "C"})
        _create(client, "2024-01-01", {"id": 1, "title": "A"})
        _create(client, "2024-01-01", {"id": 2, "title": "B"})

        response = _delete(client, {"dateKey": "2024-01-01", "taskIndex": 1})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Task deleted successfully",
        }
        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert listing["2024-01-01"] == [
            {"id": 3, "title": "C"},
            {"id": 1, "title": "A"},
        ]

    def test_delete_by_index_mixed_id_types(self, client: TestClient):
        _create(client, "2024-01-01", {"id": "a", "title": "string"})
        _create(client, "2024-01-01", {"id": 1, "title": "number"})
        _create(client, "2024-01-01", {"title": "no id"})

        # Missing ids sort first, then numbers, then strings
        response = _delete(client, {"dateKey": "2024-01-01", "taskIndex": 0})
        assert response.status_code == 200
        response = _delete(client, {"dateKey": "2024-01-01", "taskIndex": 0})
        assert response.status_code == 200

        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert listing["2024-01-01"] == [{"id": "a", "title": "string"}]

    def test_delete_out_of_range_leaves_bucket(self, client: TestClient, context):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})
        before = list(context.store.tasks)

        response = _delete(client, {"dateKey": "2024-01-01", "taskIndex": 1})

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}
        assert context.store.tasks == before

    def test_delete_negative_index_not_found(self, client: TestClient, context):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})

        response = _delete(client, {"dateKey": "2024-01-01", "taskIndex": -1})

        assert response.status_code == 404
        assert len(context.store.tasks) == 1

    def test_delete_by_task_id(self, client: TestClient):
        _create(client, "2024-01-01", {"id": "b", "title": "B"})
        _create(client, "2024-01-01", {"id": "a", "title": "A"})

        response = _delete(client, {"dateKey": "2024-01-01", "taskId": "b"})

        assert response.status_code == 200
        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert listing["2024-01-01"] == [{"id": "a", "title": "A"}]

    def test_delete_task_id_wins_over_index(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})
        _create(client, "2024-01-01", {"id": 2, "title": "B"})

        response = _delete(
            client, {"dateKey": "2024-01-01", "taskIndex": 0, "taskId": 2}
        )

        assert response.status_code == 200
        listing = client.get("/api/tasks", headers=AUTH_HEADERS).json()
        assert listing["2024-01-01"] == [{"id": 1, "title": "A"}]

    def test_delete_unknown_task_id(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})

        response = _delete(client, {"dateKey": "2024-01-01", "taskId": 42})

        assert response.status_code == 404

    def test_delete_missing_fields(self, client: TestClient):
        response = _delete(client, {"dateKey": "2024-01-01"})

        assert response.status_code == 400
        assert response.json() == {"error": "dateKey and taskIndex are required"}

    def test_delete_without_body(self, client: TestClient):
        response = client.request("DELETE", "/api/tasks", headers=AUTH_HEADERS)

        assert response.status_code == 400
        assert response.json() == {"error": "dateKey and taskIndex are required"}

    def test_delete_vanished_before_delete(self, client: TestClient):
        _create(client, "2024-01-01", {"id": 1, "title": "A"})

        with patch("fakes.InMemoryTaskRepository.delete_for_user", return_value=False):
            response = _delete(client, {"dateKey": "2024-01-01", "taskIndex": 0})

        assert response.status_code == 404
