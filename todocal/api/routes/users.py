"""
User API routes: token verification and profile image serving.

The image endpoint is public so that it can be used directly as an
``<img src>``.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError

from todocal.api.auth import get_current_user
from todocal.api.context import AppContext, check_db_available, get_context
from todocal.models.user import AuthenticatedUser, VerifyResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _etag_matches(if_none_match: str | None, digest: str) -> bool:
    """Check an If-None-Match header against an image digest."""
    if not if_none_match:
        return False
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate.strip('"') == digest:
            return True
    return False


@router.post("/auth/verify", response_model=VerifyResponse)
def verify_user(
    user: AuthenticatedUser = Depends(get_current_user),
) -> VerifyResponse:
    """Verify the bearer token and return the resolved user."""
    return VerifyResponse(user=user)


@router.get(
    "/user/image/{user_id}",
    response_class=Response,
    responses={200: {"content": {"image/*": {}}}, 304: {}, 404: {}},
)
def get_user_image(
    user_id: str,
    if_none_match: str | None = Header(default=None),
    context: AppContext = Depends(get_context),
) -> Response:
    """
    Serve a user's stored profile image.

    The digest doubles as ETag, so clients revalidating with If-None-Match
    get 304 until the avatar changes.
    """
    check_db_available(context)

    try:
        with context.unit_of_work() as uow:
            profile = uow.users.get_by_user_id(user_id)
    except SQLAlchemyError:
        logger.exception(f"Error loading profile image for user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to serve profile image")

    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")

    image = profile.profile_image
    if image is None:
        raise HTTPException(status_code=404, detail="Profile image not found")

    headers = {
        "Cache-Control": f"public, max-age={context.settings.image_cache_max_age}",
        "ETag": f'"{image.hash}"',
    }

    if _etag_matches(if_none_match, image.hash):
        return Response(status_code=304, headers=headers)

    logger.debug(f"Serving image for user {user_id} ({image.size} bytes)")
    return Response(content=image.data, media_type=image.content_type, headers=headers)
