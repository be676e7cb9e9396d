"""
Profile image download utilities.

Avatars are fetched once per URL change and mirrored into the database so
the frontend can load them from this service with long-lived caching.
"""

import hashlib
import logging
import threading

import requests

from todocal.models.user import DEFAULT_IMAGE_CONTENT_TYPE, ProfileImage

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class DownloadSlotUnavailable(Exception):
    """All download slots stayed busy for the whole timeout."""


def compute_digest(data: bytes) -> str:
    """
    Compute the content digest used as the image ETag.

    Args:
        data: Raw bytes to hash

    Returns:
        Hexadecimal SHA-256 hash string
    """
    return hashlib.sha256(data).hexdigest()


def download_image(
    url: str | None, timeout: float = 10.0, max_bytes: int = 5 * 1024 * 1024
) -> ProfileImage | None:
    """
    Download an image and wrap it as a ProfileImage.

    Failure is never raised: a missing URL, a non-200 status, a network
    error or a body larger than max_bytes all return None.

    Args:
        url: Image URL (may be empty)
        timeout: Connect and read timeout in seconds
        max_bytes: Largest body accepted

    Returns:
        ProfileImage or None
    """
    if not url:
        return None

    try:
        with requests.get(url, timeout=timeout, stream=True) as response:
            if response.status_code != 200:
                logger.warning(
                    f"Image download returned HTTP {response.status_code}",
                    extra={"json_fields": {"url": url}},
                )
                return None

            chunks: list[bytes] = []
            size = 0
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    logger.warning(
                        f"Image larger than {max_bytes} bytes, discarding",
                        extra={"json_fields": {"url": url}},
                    )
                    return None
                chunks.append(chunk)

            content_type = (
                response.headers.get("Content-Type") or DEFAULT_IMAGE_CONTENT_TYPE
            )
    except requests.RequestException as e:
        logger.warning(f"Image download failed: {e}", extra={"json_fields": {"url": url}})
        return None

    data = b"".join(chunks)
    return ProfileImage(
        data=data,
        content_type=content_type,
        hash=compute_digest(data),
        size=len(data),
    )


class ProfileImageFetcher:
    """
    Bounded avatar downloader shared by all requests.

    At most ``max_concurrent`` downloads run at once and at most one per
    user. A download that cannot get a slot within the timeout, or whose
    user already has one in flight, is skipped; the next authentication
    will schedule it again.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_bytes: int = 5 * 1024 * 1024,
        max_concurrent: int = 4,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._slots = threading.BoundedSemaphore(max_concurrent)
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    def begin(self, user_id: str) -> bool:
        """Reserve the per-user slot. Returns False if one is in flight."""
        with self._lock:
            if user_id in self._in_flight:
                return False
            self._in_flight.add(user_id)
            return True

    def end(self, user_id: str):
        """Release the per-user slot."""
        with self._lock:
            self._in_flight.discard(user_id)

    def fetch(self, url: str | None) -> ProfileImage | None:
        """
        Download url within the concurrency bound.

        Raises:
            DownloadSlotUnavailable: If no slot frees up within the timeout
        """
        if not self._slots.acquire(timeout=self.timeout):
            raise DownloadSlotUnavailable("No image download slot available")
        try:
            return download_image(url, timeout=self.timeout, max_bytes=self.max_bytes)
        finally:
            self._slots.release()
