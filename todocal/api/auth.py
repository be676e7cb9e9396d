"""
Authentication dependencies for API routes.

Requests carry a Google ID token in ``Authorization: Bearer <token>``.
After verification, the user's local profile is resolved and any avatar
download is queued as a background task.
"""

import logging

from fastapi import BackgroundTasks, Depends, Header, HTTPException, status

from todocal.api.context import AppContext, get_context
from todocal.api.profiles import (
    refresh_profile_image,
    resolve_profile,
    to_authenticated_user,
)
from todocal.models.user import AuthenticatedUser, UserProfile
from todocal.utils.google_auth import InvalidTokenError

logger = logging.getLogger(__name__)


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_current_user(
    background_tasks: BackgroundTasks,
    authorization: str | None = Header(default=None),
    context: AppContext = Depends(get_context),
) -> AuthenticatedUser:
    """
    Verify the bearer token and resolve the caller's profile.

    Profile storage problems are logged and do not fail authentication;
    the provider picture is passed through instead.

    Returns:
        AuthenticatedUser for the verified identity

    Raises:
        HTTPException: 401 if no bearer token is present
        HTTPException: 403 if the token fails verification
    """
    token = _extract_bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
        )

    try:
        claims = context.verifier.verify(token)
    except InvalidTokenError as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )

    profile: UserProfile | None = None
    if context.database_available:
        try:
            profile, refresh = resolve_profile(context, claims)
        except Exception:
            logger.exception(f"Error managing user profile for {claims.sub}")
        else:
            if refresh and claims.picture:
                background_tasks.add_task(
                    refresh_profile_image, context, claims.sub, claims.picture
                )

    return to_authenticated_user(claims, profile)
