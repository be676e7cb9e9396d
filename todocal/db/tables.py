"""
SQLAlchemy Table definitions for the Todo Calendar database.

Each table holds one kind of per-user document. Task payloads and completion
maps are stored as JSONB so the service never has to know their shape.
Uses SQLAlchemy Core (not ORM) for flexibility with Pydantic models.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID

metadata = MetaData()

# =============================================================================
# TABLE: tasks
# =============================================================================

tasks = Table(
    "tasks",
    metadata,
    Column("id", UUID, primary_key=True),
    Column("user_id", String(255), nullable=False),
    Column("date_key", String(64), nullable=False),
    Column("task", JSONB, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

Index("ix_tasks_date_key_user_id", tasks.c.date_key, tasks.c.user_id)
Index("ix_tasks_task_id_user_id", tasks.c.task["id"], tasks.c.user_id)
Index("ix_tasks_user_id", tasks.c.user_id)

# =============================================================================
# TABLE: completions
# =============================================================================

completions = Table(
    "completions",
    metadata,
    Column("user_id", String(255), primary_key=True),
    Column("type", String(32), nullable=False, default="completions"),
    Column("data", JSONB, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

# =============================================================================
# TABLE: users
# =============================================================================

users = Table(
    "users",
    metadata,
    Column("user_id", String(255), primary_key=True),
    Column("email", String(255)),
    Column("name", String(255)),
    Column("google_picture_url", Text),
    # Mirrored avatar; all four are NULL when no image is stored
    Column("image_data", LargeBinary),
    Column("image_content_type", String(255)),
    Column("image_hash", String(64)),
    Column("image_size", Integer),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)
