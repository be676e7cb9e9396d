"""
User profile repository for database operations.

Handles profile provisioning and the mirrored avatar image columns.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert

from todocal.db.repositories.base import BaseRepository
from todocal.db.tables import users
from todocal.models.user import DEFAULT_IMAGE_CONTENT_TYPE, ProfileImage, UserProfile


class UserRepository(BaseRepository[UserProfile]):
    """Repository for UserProfile operations."""

    @property
    def table(self) -> Table:
        return users

    def _row_to_model(self, row: Any) -> UserProfile:
        """Convert database row to UserProfile model."""
        profile_image = None
        if row.image_data is not None:
            data = bytes(row.image_data)
            profile_image = ProfileImage(
                data=data,
                content_type=row.image_content_type or DEFAULT_IMAGE_CONTENT_TYPE,
                hash=row.image_hash,
                size=row.image_size if row.image_size is not None else len(data),
            )

        return UserProfile(
            user_id=row.user_id,
            email=row.email,
            name=row.name,
            profile_image=profile_image,
            google_picture_url=row.google_picture_url,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _model_to_dict(self, model: UserProfile) -> dict:
        """Convert UserProfile model to database dict."""
        return {
            "user_id": model.user_id,
            "email": model.email,
            "name": model.name,
            "google_picture_url": model.google_picture_url,
            **_image_columns(model.profile_image),
            "created_at": model.created_at,
            "updated_at": model.updated_at,
        }

    def get_by_user_id(self, user_id: str) -> UserProfile | None:
        """Get a profile by identity provider subject."""
        return self.get_by_key(user_id)

    def create_if_absent(self, profile: UserProfile) -> tuple[UserProfile, bool]:
        """
        Insert a profile unless one already exists for its user_id.

        Concurrent first logins for the same user race on the unique key;
        the loser reads back the winner's row.

        Returns:
            Tuple of (stored profile, whether this call created it)
        """
        stmt = (
            insert(self.table)
            .values(**self._model_to_dict(profile))
            .on_conflict_do_nothing(index_elements=["user_id"])
            .returning(self.table)
        )
        row = self.session.execute(stmt).fetchone()
        if row is not None:
            return self._row_to_model(row), True

        existing = self.get_by_user_id(profile.user_id)
        if existing is None:
            raise RuntimeError(f"User profile vanished during insert: {profile.user_id}")
        return existing, False

    def update_identity(
        self, user_id: str, email: str | None, name: str | None
    ) -> bool:
        """Refresh the identity fields copied from the provider."""
        return self.update_by_key(
            user_id,
            email=email,
            name=name,
            updated_at=datetime.now(timezone.utc),
        )

    def update_image(
        self, user_id: str, image: ProfileImage | None, picture_url: str | None
    ) -> bool:
        """
        Store the result of an avatar download.

        A None image clears any previously stored one; the picture URL is
        recorded either way.

        Returns:
            True if the profile exists and was updated
        """
        return self.update_by_key(
            user_id,
            google_picture_url=picture_url,
            **_image_columns(image),
            updated_at=datetime.now(timezone.utc),
        )


def _image_columns(image: ProfileImage | None) -> dict:
    if image is None:
        return {
            "image_data": None,
            "image_content_type": None,
            "image_hash": None,
            "image_size": None,
        }
    return {
        "image_data": image.data,
        "image_content_type": image.content_type,
        "image_hash": image.hash,
        "image_size": image.size,
    }
