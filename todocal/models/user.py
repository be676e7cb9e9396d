from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"


class ProfileImage(BaseModel):
    """Avatar bytes mirrored from the identity provider."""

    data: bytes = Field(description="Raw image bytes", repr=False)
    content_type: str = Field(default=DEFAULT_IMAGE_CONTENT_TYPE)
    hash: str = Field(description="SHA-256 hex digest of data, used as ETag")
    size: int = Field(ge=0, description="Length of data in bytes")


class UserProfile(BaseModel):
    """
    Local profile for an identity provider user.

    Created on first successful authentication. ``profile_image`` is None
    until a download succeeds, and stays None if the provider has no
    picture or every download failed.
    """

    user_id: str = Field(description="Identity provider subject")
    email: Optional[str] = Field(default=None)
    name: Optional[str] = Field(default=None)
    profile_image: Optional[ProfileImage] = Field(default=None)
    google_picture_url: Optional[str] = Field(
        default=None, description="Provider avatar URL last seen for this user"
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def has_image(self) -> bool:
        return self.profile_image is not None


class IdentityClaims(BaseModel):
    """The subset of verified ID token claims the service uses."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None


class AuthenticatedUser(BaseModel):
    """Identity exposed to request handlers and returned by /api/auth/verify."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = Field(
        default=None,
        description="Local image URL when an image is stored, else the provider URL",
    )
    has_stored_image: bool = Field(default=False, alias="hasStoredImage")


class VerifyResponse(BaseModel):
    success: bool = True
    user: AuthenticatedUser
