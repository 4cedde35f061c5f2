"""Facebook identity provider.

Two entry points:
- Authorization code flow: exchange the code for an access token with a GET
  to the Graph token endpoint, then read ``me`` with the profile fields.
- Access token: verify a token issued to the tenant's native app by calling
  ``me``, then read the profile fields.

Every Graph call carries ``appsecret_proof``, so Facebook itself rejects a
token that was issued to any app other than the tenant's.

Facebook identities must carry an email; a profile without one is rejected
before any user record is touched.
"""

import hashlib
import hmac
from typing import Any
from urllib.parse import urlencode

import httpx
from loguru import logger

from ssobroker.auth.errors import MissingEmailError, ProviderError
from ssobroker.auth.provider_http import ProviderHTTP
from ssobroker.auth.providers import IdentityProvider
from ssobroker.schemas.identity import NormalizedIdentity, ProviderCredential
from ssobroker.schemas.user import AuthProvider
from ssobroker.settings import ProviderSettings, settings

PROFILE_FIELDS = "id,name,email,picture.width(400).height(400)"


class FacebookProvider(IdentityProvider):
    """Facebook Login via the Graph API."""

    name = AuthProvider.FACEBOOK

    def __init__(
        self,
        config: ProviderSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or settings.providers
        self.http = ProviderHTTP.from_settings("facebook", self.config, transport)

    def authorization_url(
        self,
        credential: ProviderCredential,
        state: str,
        redirect_uri: str,
    ) -> str:
        params = {
            "client_id": credential.client_id,
            "redirect_uri": redirect_uri,
            "state": state,
            "scope": "email public_profile",
        }
        return f"{self.config.facebook_auth_url}?{urlencode(params)}"

    async def exchange_and_fetch_identity(
        self,
        credential: ProviderCredential,
        code: str,
        redirect_uri: str,
    ) -> NormalizedIdentity:
        token_data = await self.http.get_json(
            self.config.facebook_token_url,
            action="token exchange",
            params={
                "client_id": credential.client_id,
                "client_secret": credential.client_secret,
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )
        access_token = token_data.get("access_token")
        if not access_token:
            logger.warning("Facebook token exchange returned no access_token")
            raise ProviderError()

        profile = await self._fetch_profile(access_token, credential)
        return self._normalize(profile)

    async def identity_from_token(
        self,
        credential: ProviderCredential,
        token: str,
    ) -> NormalizedIdentity:
        verified = await self.http.get_json(
            self.config.facebook_userinfo_url,
            action="token verification",
            params=self._auth_params(token, credential),
        )
        if not verified.get("id"):
            logger.warning("Facebook token verification returned no user id")
            raise ProviderError()

        profile = await self._fetch_profile(token, credential)
        if str(profile.get("id")) != str(verified["id"]):
            logger.warning("Facebook profile id does not match verified token id")
            raise ProviderError()
        return self._normalize(profile)

    async def _fetch_profile(
        self,
        access_token: str,
        credential: ProviderCredential,
    ) -> dict[str, Any]:
        return await self.http.get_json(
            self.config.facebook_userinfo_url,
            action="profile fetch",
            params={"fields": PROFILE_FIELDS, **self._auth_params(access_token, credential)},
        )

    @staticmethod
    def _auth_params(
        access_token: str,
        credential: ProviderCredential,
    ) -> dict[str, str]:
        proof = hmac.new(
            credential.client_secret.encode("utf-8"),
            access_token.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return {"access_token": access_token, "appsecret_proof": proof}

    def _normalize(self, profile: dict[str, Any]) -> NormalizedIdentity:
        external_id = profile.get("id")
        name = profile.get("name")
        if not external_id or not name:
            logger.warning("Missing required Facebook profile information")
            raise ProviderError("Missing required Facebook profile information")

        email = profile.get("email")
        if not email:
            logger.info(f"Facebook user {external_id} has no email on the profile")
            raise MissingEmailError("Email is required from Facebook account")

        picture = profile.get("picture")
        picture_url = None
        if isinstance(picture, dict):
            picture_url = (picture.get("data") or {}).get("url")

        return NormalizedIdentity(
            external_id=str(external_id),
            name=name,
            email=email.lower(),
            picture_url=picture_url or None,
        )
