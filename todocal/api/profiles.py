"""
User profile provisioning and avatar mirroring.

Each authentication resolves (or creates) the local profile synchronously.
Downloading the avatar is deferred to a background task, so a slow or
failing image host never delays or fails authentication.
"""

import logging

from todocal.api.context import AppContext
from todocal.models.user import AuthenticatedUser, IdentityClaims, UserProfile
from todocal.utils.images import DownloadSlotUnavailable

logger = logging.getLogger(__name__)

IMAGE_PATH_TEMPLATE = "/api/user/image/{user_id}"


def needs_image_refresh(profile: UserProfile, picture_url: str | None) -> bool:
    """
    Whether the stored avatar must be (re)downloaded.

    True when the provider has a picture and either nothing is stored yet or
    the provider URL differs from the one last mirrored.
    """
    if not picture_url:
        return False
    return profile.profile_image is None or profile.google_picture_url != picture_url


def resolve_profile(
    context: AppContext, claims: IdentityClaims
) -> tuple[UserProfile, bool]:
    """
    Get or create the profile for a verified identity.

    Args:
        context: Application context
        claims: Verified token claims

    Returns:
        Tuple of (profile, whether an image download should be scheduled)
    """
    with context.unit_of_work() as uow:
        profile = uow.users.get_by_user_id(claims.sub)
        created = False

        if profile is None:
            profile, created = uow.users.create_if_absent(
                UserProfile(
                    user_id=claims.sub,
                    email=claims.email,
                    name=claims.name,
                    google_picture_url=claims.picture,
                )
            )
            if created:
                logger.info(f"Created user profile for {claims.email}")

        refresh = needs_image_refresh(profile, claims.picture)
        if refresh and not created:
            uow.users.update_identity(claims.sub, claims.email, claims.name)

        uow.commit()

    return profile, refresh


def refresh_profile_image(context: AppContext, user_id: str, picture_url: str):
    """
    Download the avatar and store it on the profile.

    Runs as a background task. Downloads already in flight for the user, or
    made unnecessary by a concurrent refresh, are skipped. Nothing is raised.
    """
    fetcher = context.images
    if not fetcher.begin(user_id):
        logger.info(f"Image download already in flight for user {user_id}")
        return

    try:
        with context.unit_of_work() as uow:
            profile = uow.users.get_by_user_id(user_id)
        if profile is None or not needs_image_refresh(profile, picture_url):
            return

        logger.info(
            f"Downloading profile image for user {user_id}",
            extra={"json_fields": {"url": picture_url}},
        )
        try:
            image = fetcher.fetch(picture_url)
        except DownloadSlotUnavailable as e:
            logger.warning(f"Skipping image download for user {user_id}: {e}")
            return

        with context.unit_of_work() as uow:
            uow.users.update_image(user_id, image, picture_url)
            uow.commit()

        if image is None:
            logger.info(f"No profile image stored for user {user_id}")
        else:
            logger.info(f"Stored profile image for user {user_id} ({image.size} bytes)")
    except Exception:
        logger.exception(f"Failed to refresh profile image for user {user_id}")
    finally:
        fetcher.end(user_id)


def to_authenticated_user(
    claims: IdentityClaims, profile: UserProfile | None
) -> AuthenticatedUser:
    """
    Build the identity exposed to handlers.

    ``picture`` points at the locally served image when one is stored,
    otherwise it is the provider URL.
    """
    has_image = profile is not None and profile.has_image
    picture = (
        IMAGE_PATH_TEMPLATE.format(user_id=claims.sub) if has_image else claims.picture
    )
    return AuthenticatedUser(
        id=claims.sub,
        email=claims.email,
        name=claims.name,
        picture=picture,
        has_stored_image=has_image,
    )
