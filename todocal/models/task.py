from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Task ids are whatever the client assigns (numbers or strings)
TaskId = int | float | str


class TaskDocument(BaseModel):
    """
    A single stored task.

    The task payload is opaque to the service apart from its ``id`` field,
    which is used to locate the document on update and to order a date
    bucket on positional delete.
    """

    id: str = Field(description="Server-generated document identifier (UUID)")
    user_id: str = Field(description="Owner (identity provider subject)")
    date_key: str = Field(description="Calendar date bucket, e.g. 2024-01-01")
    task: dict[str, Any] = Field(description="Client-defined task payload")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation time",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update time",
    )

    @property
    def task_id(self) -> Optional[TaskId]:
        """Client-assigned task id, if the payload carries one."""
        return self.task.get("id")


# =============================================================================
# API request/response models
# =============================================================================


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TaskCreateRequest(_CamelRequest):
    """Body of POST /api/tasks."""

    date_key: Optional[str] = Field(default=None, alias="dateKey")
    task: Optional[dict[str, Any]] = Field(default=None)


class TaskUpdateRequest(_CamelRequest):
    """Body of PUT /api/tasks. ``taskIndex`` is required but not used."""

    date_key: Optional[str] = Field(default=None, alias="dateKey")
    task_index: Any = Field(default=None, alias="taskIndex")
    task: Optional[dict[str, Any]] = Field(default=None)


class TaskDeleteRequest(_CamelRequest):
    """
    Body of DELETE /api/tasks.

    ``taskId`` selects the task by its stable id and is preferred over the
    positional ``taskIndex`` when both are sent.
    """

    date_key: Optional[str] = Field(default=None, alias="dateKey")
    task_index: Optional[int] = Field(default=None, alias="taskIndex")
    task_id: Optional[TaskId] = Field(default=None, alias="taskId")


class TaskCreateResponse(BaseModel):
    success: bool = True
    id: str
    message: str


class OperationResponse(BaseModel):
    success: bool = True
    message: str
