"""
Task API routes.

Tasks are stored one document per task and returned grouped by date key.
All endpoints operate only on the authenticated user's documents.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from todocal.api.auth import get_current_user
from todocal.api.context import AppContext, check_db_available, get_context
from todocal.models.task import (
    OperationResponse,
    TaskCreateRequest,
    TaskCreateResponse,
    TaskDeleteRequest,
    TaskDocument,
    TaskUpdateRequest,
)
from todocal.models.user import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter()

COMPLETIONS_KEY = "completions"


def group_by_date(documents: list[TaskDocument]) -> dict[str, list[dict[str, Any]]]:
    """Reshape task documents into {dateKey: [task, ...]}, keeping store order."""
    grouped: dict[str, list[dict[str, Any]]] = {}
    for document in documents:
        grouped.setdefault(document.date_key, []).append(document.task)
    return grouped


@router.get("/tasks")
def list_tasks(
    user: AuthenticatedUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """
    Get all tasks for the authenticated user.

    Returns:
        Mapping of date key to task list, plus the user's completion map
        under the ``completions`` key when one has been saved
    """
    check_db_available(context)

    try:
        with context.unit_of_work() as uow:
            documents = uow.tasks.get_by_user(user.id)
            completions = uow.completions.get_for_user(user.id)
    except SQLAlchemyError:
        logger.exception("Error fetching tasks")
        raise HTTPException(status_code=500, detail="Failed to fetch tasks")

    result: dict[str, Any] = group_by_date(documents)
    if completions is not None:
        result[COMPLETIONS_KEY] = completions.data
    return result


@router.post("/tasks", response_model=TaskCreateResponse)
def create_task(
    request: TaskCreateRequest | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> TaskCreateResponse:
    """
    Save a new task under a date key.

    Duplicate task ids within a date are not rejected.
    """
    if request is None or not request.date_key or request.task is None:
        raise HTTPException(status_code=400, detail="dateKey and task are required")

    check_db_available(context)

    try:
        with context.unit_of_work() as uow:
            created = uow.tasks.create(
                TaskDocument(
                    id="",
                    user_id=user.id,
                    date_key=request.date_key,
                    task=request.task,
                )
            )
            uow.commit()
    except SQLAlchemyError:
        logger.exception("Error saving task")
        raise HTTPException(status_code=500, detail="Failed to save task")

    return TaskCreateResponse(id=created.id, message="Task saved successfully")


@router.put("/tasks", response_model=OperationResponse)
def update_task(
    request: TaskUpdateRequest | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> OperationResponse:
    """
    Replace a task, located by date key and ``task.id``.

    ``taskIndex`` must be sent but does not take part in the lookup.
    """
    # taskIndex may be null; only an absent field is rejected
    index_sent = request is not None and "task_index" in request.model_fields_set
    if not index_sent or not request.date_key or request.task is None:
        raise HTTPException(
            status_code=400, detail="dateKey, taskIndex, and task are required"
        )

    check_db_available(context)

    task_id = request.task.get("id")

    try:
        with context.unit_of_work() as uow:
            existing = None
            if task_id is not None:
                existing = uow.tasks.find_by_task_id(user.id, request.date_key, task_id)
            if existing is None:
                raise HTTPException(status_code=404, detail="Task not found")

            if not uow.tasks.replace_task(existing.id, user.id, request.task):
                raise HTTPException(status_code=404, detail="Task not found")
            uow.commit()
    except SQLAlchemyError:
        logger.exception("Error updating task")
        raise HTTPException(status_code=500, detail="Failed to update task")

    return OperationResponse(message="Task updated successfully")


@router.delete("/tasks", response_model=OperationResponse)
def delete_task(
    request: TaskDeleteRequest | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> OperationResponse:
    """
    Delete one task from a date bucket.

    With ``taskId`` the task is selected by its id. Otherwise ``taskIndex``
    is a position in the bucket sorted by task id ascending; the position is
    recomputed on every call, so concurrent deletes in the same bucket can
    hit a different task than the caller saw.
    """
    if (
        request is None
        or not request.date_key
        or (request.task_index is None and request.task_id is None)
    ):
        raise HTTPException(
            status_code=400, detail="dateKey and taskIndex are required"
        )

    check_db_available(context)

    try:
        with context.unit_of_work() as uow:
            target: TaskDocument | None = None
            if request.task_id is not None:
                target = uow.tasks.find_by_task_id(
                    user.id, request.date_key, request.task_id
                )
            else:
                bucket = uow.tasks.get_bucket_sorted(user.id, request.date_key)
                if 0 <= request.task_index < len(bucket):
                    target = bucket[request.task_index]

            if target is None:
                raise HTTPException(status_code=404, detail="Task not found")

            if not uow.tasks.delete_for_user(target.id, user.id):
                raise HTTPException(status_code=404, detail="Task not found")
            uow.commit()
    except SQLAlchemyError:
        logger.exception("Error deleting task")
        raise HTTPException(status_code=500, detail="Failed to delete task")

    return OperationResponse(message="Task deleted successfully")
