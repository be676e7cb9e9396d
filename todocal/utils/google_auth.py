"""
Google ID token verification.

Signature, expiry, issuer and audience checks are delegated to google-auth;
this module only adapts its result to IdentityClaims.
"""

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import id_token

from todocal.models.user import IdentityClaims


class InvalidTokenError(Exception):
    """The bearer token could not be verified."""


class GoogleTokenVerifier:
    """Verifies Google-issued ID tokens for one OAuth client ID."""

    def __init__(self, client_id: str, session: requests.Session | None = None):
        self.client_id = client_id
        # Reused so Google's signing certificates travel over a pooled session
        self._request = Request(session=session or requests.Session())

    def verify(self, token: str) -> IdentityClaims:
        """
        Verify a token and return its claims.

        Args:
            token: Raw ID token (JWT)

        Returns:
            IdentityClaims with at least ``sub``

        Raises:
            InvalidTokenError: Bad signature, wrong audience, expired token,
                missing subject, or certificates could not be fetched
        """
        try:
            payload = id_token.verify_oauth2_token(
                token, self._request, audience=self.client_id
            )
            # pydantic's ValidationError is a ValueError
            return IdentityClaims.model_validate(payload)
        except (ValueError, GoogleAuthError) as e:
            raise InvalidTokenError(str(e)) from e
