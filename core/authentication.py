"""
Bearer token verification against the external identity provider.

HomeHero never issues tokens. Clients sign in with the identity provider
(Firebase Authentication in production) and send the resulting ID token as
``Authorization: Bearer <token>``. This module verifies that token and
attaches the caller's identity to the request.
"""

import logging
from functools import lru_cache

import jwt
from jwt import PyJWKClient
from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils.functional import cached_property
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication
from rest_framework_simplejwt.models import TokenUser

from .exceptions import (
    AccountDisabled,
    InvalidIdentityToken,
    InvalidTokenFormat,
    TokenExpired,
    VerificationFailed,
)

logger = logging.getLogger(__name__)


def identity_settings():
    """Return the identity provider configuration block."""
    return settings.IDENTITY_PROVIDER


@lru_cache(maxsize=4)
def jwks_client(url):
    """
    Return a cached JWKS client for the given URL.

    PyJWKClient caches the fetched key set itself, so one client per URL
    keeps key lookups off the network for most requests.
    """
    return PyJWKClient(url)


class VerifiedIdentity(TokenUser):
    """
    The caller as asserted by a verified identity token.

    Exposes the claims the API relies on (uid, email, email_verified, name,
    picture) plus the locally stored profile, if one has been registered.
    """

    def __str__(self):
        return f"VerifiedIdentity {self.uid}"

    @cached_property
    def uid(self):
        return self.token['sub']

    @cached_property
    def email(self):
        return (self.token.get('email') or '').lower()

    @cached_property
    def email_verified(self):
        return bool(self.token.get('email_verified', False))

    @cached_property
    def name(self):
        return self.token.get('name') or ''

    @cached_property
    def picture(self):
        return self.token.get('picture') or ''

    @cached_property
    def profile(self):
        """Registered User row for this identity, or None."""
        User = get_user_model()
        return User.objects.filter(uid=self.uid).first()

    @cached_property
    def is_staff(self):
        return bool(self.profile and self.profile.is_staff)

    @cached_property
    def display_name(self):
        """Best available human name for snapshots on bookings and reviews."""
        if self.profile and self.profile.display_name:
            return self.profile.display_name
        return self.name or self.email or self.uid


class IdentityTokenAuthentication(JWTStatelessUserAuthentication):
    """
    DRF authentication class verifying identity provider ID tokens.

    Header parsing is inherited from simplejwt. Verification uses PyJWT with
    keys from the provider's JWKS endpoint, or a shared signing key when no
    JWKS URL is configured.

    Failure mapping:
    - No bearer header: request stays anonymous, protected views answer 401 MISSING_TOKEN
    - Malformed header or empty token: 401 INVALID_TOKEN_FORMAT
    - Expired token: 401 TOKEN_EXPIRED
    - Undecodable token or bad signature: 401 INVALID_TOKEN
    - Any other verification failure: 403 VERIFICATION_FAILED
    """

    www_authenticate_realm = 'homehero'

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        try:
            raw_token = self.get_raw_token(header)
        except AuthenticationFailed:
            raise InvalidTokenFormat()

        if raw_token is None:
            # Not a bearer header
            return None

        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token

    def get_validated_token(self, raw_token):
        """
        Verify the raw token and return its claims.

        Args:
            raw_token: Token bytes taken from the Authorization header

        Returns:
            dict: Verified claims

        Raises:
            AuthenticationFailed subclasses as described on the class
        """
        config = identity_settings()

        if not raw_token or not raw_token.strip():
            raise InvalidTokenFormat()

        try:
            key = self._verification_key(raw_token, config)
            claims = jwt.decode(
                raw_token,
                key,
                algorithms=config['ALGORITHMS'],
                audience=config.get('AUDIENCE') or None,
                issuer=config.get('ISSUER') or None,
                leeway=config.get('LEEWAY', 0),
                options={
                    'require': ['exp', 'iat', 'sub'],
                    'verify_aud': bool(config.get('AUDIENCE')),
                },
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired identity token")
            raise TokenExpired()
        except jwt.DecodeError as e:
            logger.warning(f"Rejected undecodable identity token: {e}")
            raise InvalidIdentityToken()
        except (jwt.InvalidTokenError, jwt.PyJWKClientError) as e:
            logger.warning(f"Identity token verification failed: {e}")
            raise VerificationFailed()

        if not claims.get('sub'):
            raise VerificationFailed('Token has no subject.')

        return claims

    def _verification_key(self, raw_token, config):
        """Resolve the key that should have signed this token."""
        jwks_url = config.get('JWKS_URL')
        if jwks_url:
            return jwks_client(jwks_url).get_signing_key_from_jwt(raw_token).key
        signing_key = config.get('SIGNING_KEY')
        if not signing_key:
            logger.error("Identity provider has neither JWKS_URL nor SIGNING_KEY configured")
            raise VerificationFailed('No identity provider key is configured.')
        return signing_key

    def get_user(self, validated_token):
        identity = VerifiedIdentity(validated_token)
        profile = identity.profile
        if profile is not None and not profile.is_active:
            logger.warning(f"Disabled account attempted access: uid={identity.uid}")
            raise AccountDisabled()
        return identity


class OptionalIdentityTokenAuthentication(IdentityTokenAuthentication):
    """
    Variant for public endpoints: a bad token leaves the request anonymous
    instead of failing it.
    """

    def authenticate(self, request):
        try:
            return super().authenticate(request)
        except AuthenticationFailed as e:
            logger.info(f"Ignoring unusable token on public endpoint: {e.default_code}")
            return None
