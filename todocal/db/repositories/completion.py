"""
Completions repository for database operations.

Each user has at most one completions row, replaced wholesale on save.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert

from todocal.db.repositories.base import BaseRepository
from todocal.db.tables import completions
from todocal.models.completion import COMPLETIONS_TYPE, CompletionsDocument


class CompletionRepository(BaseRepository[CompletionsDocument]):
    """Repository for per-user completion flags."""

    @property
    def table(self) -> Table:
        return completions

    def _row_to_model(self, row: Any) -> CompletionsDocument:
        """Convert database row to CompletionsDocument model."""
        return CompletionsDocument(
            user_id=row.user_id,
            type=row.type or COMPLETIONS_TYPE,
            data=row.data,
            updated_at=row.updated_at,
        )

    def _model_to_dict(self, model: CompletionsDocument) -> dict:
        """Convert CompletionsDocument model to database dict."""
        return {
            "user_id": model.user_id,
            "type": model.type,
            "data": model.data,
            "updated_at": model.updated_at,
        }

    def get_for_user(self, user_id: str) -> CompletionsDocument | None:
        """Get the user's completions, or None if never saved."""
        return self.get_by_key(user_id)

    def upsert(self, user_id: str, data: Any) -> CompletionsDocument:
        """
        Insert or replace the user's completions.

        Uses user_id as the unique key. The previous data is discarded.

        Args:
            user_id: Owner ID
            data: Opaque completion map

        Returns:
            Stored completions document
        """
        document = CompletionsDocument(user_id=user_id, data=data)
        values = self._model_to_dict(document)

        stmt = insert(self.table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={"data": values["data"], "updated_at": values["updated_at"]},
        )

        row = self.session.execute(stmt.returning(self.table)).fetchone()
        return self._row_to_model(row)
