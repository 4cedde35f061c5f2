"""Google identity provider.

Two entry points:
- Authorization code flow: exchange the code at Google's token endpoint with
  the tenant's client id/secret, then read the userinfo endpoint.
- ID token: verify a token issued to the tenant's native app against Google's
  JWKS (signature, issuer, audience == tenant client id, expiry).

Email is optional for Google identities; without one the linker falls back to
``(google, sub)``. An email Google reports as unverified is dropped so it
cannot be used to claim someone else's account.
"""

import time
from typing import Any
from urllib.parse import urlencode

import httpx
from authlib.jose import JoseError, JsonWebKey, JsonWebToken
from loguru import logger

from ssobroker.auth.errors import ProviderError
from ssobroker.auth.provider_http import ProviderHTTP
from ssobroker.auth.providers import IdentityProvider
from ssobroker.schemas.identity import NormalizedIdentity, ProviderCredential
from ssobroker.schemas.user import AuthProvider
from ssobroker.settings import ProviderSettings, settings


class GoogleProvider(IdentityProvider):
    """Google OAuth 2.0 / OpenID Connect."""

    name = AuthProvider.GOOGLE

    ISSUERS = ["accounts.google.com", "https://accounts.google.com"]

    def __init__(
        self,
        config: ProviderSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Google provider.

        Args:
            config: Provider settings (defaults to application settings)
            transport: Custom httpx transport for outbound calls
        """
        self.config = config or settings.providers
        self.http = ProviderHTTP.from_settings("google", self.config, transport)
        self.jwks_cache_ttl = self.config.google_jwks_cache_ttl

        self._jwks: dict[str, Any] | None = None
        self._jwks_cache_time: float = 0
        self._jwt = JsonWebToken(["RS256"])

    def authorization_url(
        self,
        credential: ProviderCredential,
        state: str,
        redirect_uri: str,
    ) -> str:
        params = {
            "client_id": credential.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": "email profile",
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.config.google_auth_url}?{urlencode(params)}"

    async def exchange_and_fetch_identity(
        self,
        credential: ProviderCredential,
        code: str,
        redirect_uri: str,
    ) -> NormalizedIdentity:
        token_data = await self.http.post_json(
            self.config.google_token_url,
            action="token exchange",
            data={
                "code": code,
                "client_id": credential.client_id,
                "client_secret": credential.client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        access_token = token_data.get("access_token")
        if not access_token:
            logger.warning("Google token exchange returned no access_token")
            raise ProviderError()

        profile = await self.http.get_json(
            self.config.google_userinfo_url,
            action="userinfo",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return self._normalize(
            external_id=profile.get("id"),
            profile=profile,
            email_verified=profile.get("verified_email"),
        )

    async def identity_from_token(
        self,
        credential: ProviderCredential,
        token: str,
    ) -> NormalizedIdentity:
        claims = await self.verify_id_token(token, audience=credential.client_id)
        return self._normalize(
            external_id=claims.get("sub"),
            profile=claims,
            email_verified=claims.get("email_verified"),
        )

    async def verify_id_token(self, id_token: str, audience: str) -> dict[str, Any]:
        """Validate a Google ID token.

        Args:
            id_token: JWT issued by Google
            audience: Expected audience (the tenant's Google client id)

        Returns:
            Validated claims

        Raises:
            ProviderError: Signature, issuer, audience or expiry check failed
        """
        claims_options = {
            "iss": {"essential": True, "values": self.ISSUERS},
            "aud": {"essential": True, "value": audience},
            "exp": {"essential": True},
            "sub": {"essential": True},
        }

        jwks = await self._get_jwks()
        try:
            return self._decode(id_token, jwks, claims_options)
        except (JoseError, ValueError) as e:
            error_msg = str(e).lower()

            if "expired" in error_msg:
                logger.warning("Google ID token expired")
                raise ProviderError() from e

            # Google rotates signing keys; refresh once on an unknown key id
            if "kid" in error_msg or "key" in error_msg:
                logger.info("Unknown Google key ID, refreshing JWKS and retrying")
                jwks = await self._get_jwks(force_refresh=True)
                try:
                    return self._decode(id_token, jwks, claims_options)
                except (JoseError, ValueError) as refresh_e:
                    logger.warning(f"Google ID token validation failed: {refresh_e}")
                    raise ProviderError() from refresh_e

            logger.warning(f"Google ID token validation failed: {e}")
            raise ProviderError() from e

    def _decode(
        self,
        id_token: str,
        jwks: dict[str, Any],
        claims_options: dict[str, Any],
    ) -> dict[str, Any]:
        claims = self._jwt.decode(
            id_token,
            key=JsonWebKey.import_key_set(jwks),
            claims_options=claims_options,
        )
        claims.validate()
        return dict(claims)

    async def _get_jwks(self, force_refresh: bool = False) -> dict[str, Any]:
        """Fetch Google's JWKS, cached for ``jwks_cache_ttl`` seconds."""
        now = time.time()

        if (
            not force_refresh
            and self._jwks
            and (now - self._jwks_cache_time) < self.jwks_cache_ttl
        ):
            return self._jwks

        self._jwks = await self.http.get_json(self.config.google_jwks_url, action="jwks")
        self._jwks_cache_time = now
        logger.info(f"Refreshed JWKS from {self.config.google_jwks_url}")
        return self._jwks

    def _normalize(
        self,
        external_id: Any,
        profile: dict[str, Any],
        email_verified: Any,
    ) -> NormalizedIdentity:
        if not external_id:
            logger.warning("Google profile has no user id")
            raise ProviderError()

        email = profile.get("email") or None
        if email and email_verified is False:
            logger.info(f"Ignoring unverified Google email for user {external_id}")
            email = None

        return NormalizedIdentity(
            external_id=str(external_id),
            name=profile.get("name") or email or str(external_id),
            email=email,
            picture_url=profile.get("picture") or None,
        )
