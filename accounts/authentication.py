"""
Identity-provider bearer token authentication.

The identity provider owns sign-in; this backend only verifies the ID token
it issued and exposes the asserted identity. It never touches the database:
persisted users and roles are resolved later by the authorization gate.
"""

import logging
from dataclasses import dataclass, field

from django.conf import settings
from rest_framework import authentication, exceptions
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenBackendError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Caller asserted by a verified identity token."""
    uid: str
    email: str = ''
    name: str = ''
    claims: dict = field(default_factory=dict, compare=False)

    is_authenticated = True
    is_anonymous = False

    @property
    def pk(self):
        return self.uid


def get_token_backend():
    """Build the verifier from the identity settings."""
    algorithm = settings.IDENTITY_TOKEN_ALGORITHM
    jwk_url = None if algorithm.startswith('HS') else settings.IDENTITY_JWK_URL
    return TokenBackend(
        algorithm,
        signing_key=settings.IDENTITY_SIGNING_KEY or None,
        audience=settings.IDENTITY_AUDIENCE,
        issuer=settings.IDENTITY_ISSUER,
        jwk_url=jwk_url,
        leeway=settings.IDENTITY_LEEWAY_SECONDS,
    )


class IdentityTokenAuthentication(authentication.BaseAuthentication):
    """
    Authenticates ``Authorization: Bearer <id token>`` headers.

    Returns (Identity, token) on success, None when no bearer header is
    present, and raises AuthenticationFailed for malformed or invalid tokens.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        auth = authentication.get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise exceptions.AuthenticationFailed('Invalid authorization header')

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid authorization header')

        try:
            claims = get_token_backend().decode(token, verify=True)
        except TokenBackendError as e:
            logger.warning(f"Rejected identity token: {e}")
            raise exceptions.AuthenticationFailed('Invalid or expired token')

        uid = claims.get('user_id') or claims.get('sub')
        if not uid:
            raise exceptions.AuthenticationFailed('Token has no subject')

        identity = Identity(
            uid=str(uid),
            email=claims.get('email', '') or '',
            name=claims.get('name', '') or '',
            claims=claims,
        )
        return identity, token

    def authenticate_header(self, request):
        return self.keyword
