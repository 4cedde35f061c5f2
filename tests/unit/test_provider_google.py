"""Test the Google provider against a mocked Google (httpx.MockTransport)."""

import time
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from authlib.jose import JsonWebKey, JsonWebToken

from ssobroker.auth.errors import ProviderError
from ssobroker.auth.provider_google import GoogleProvider
from ssobroker.schemas.identity import ProviderCredential

CREDENTIAL = ProviderCredential(client_id="acme-google-id", client_secret="acme-google-secret")
CALLBACK = "https://sso.example.com/api/auth/google/callback"


@pytest.fixture(scope="module")
def signing_key():
    return JsonWebKey.generate_key("RSA", 2048, is_private=True)


@pytest.fixture(scope="module")
def rotated_key():
    return JsonWebKey.generate_key("RSA", 2048, is_private=True)


def _jwks(key, kid):
    return {"keys": [key.as_dict(is_private=False, kid=kid, alg="RS256", use="sig")]}


def _id_token(key, kid="key-1", **overrides):
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": CREDENTIAL.client_id,
        "sub": "g-123",
        "email": "Alice@Example.com",
        "email_verified": True,
        "name": "Alice",
        "picture": "https://lh3.example/alice.png",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    token = JsonWebToken(["RS256"]).encode({"alg": "RS256", "kid": kid}, claims, key)
    return token.decode("ascii")


class GoogleStub:
    """Routes requests to canned Google responses and records them."""

    def __init__(self, provider_config):
        self.config = provider_config
        self.requests: list[httpx.Request] = []
        self.token_response = httpx.Response(200, json={"access_token": "goog-at"})
        self.userinfo = {
            "id": "g-123",
            "email": "Alice@Example.com",
            "verified_email": True,
            "name": "Alice",
            "picture": "https://lh3.example/alice.png",
        }
        self.jwks_responses: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url.startswith(self.config.google_token_url):
            return self.token_response
        if url.startswith(self.config.google_userinfo_url):
            return httpx.Response(200, json=self.userinfo)
        if url.startswith(self.config.google_jwks_url):
            jwks = self.jwks_responses[0] if len(self.jwks_responses) == 1 else self.jwks_responses.pop(0)
            return httpx.Response(200, json=jwks)
        return httpx.Response(404)

    def count(self, url: str) -> int:
        return sum(1 for r in self.requests if str(r.url).startswith(url))


@pytest.fixture
def stub(provider_config):
    return GoogleStub(provider_config)


@pytest.fixture
def provider(provider_config, stub):
    return GoogleProvider(provider_config, transport=httpx.MockTransport(stub))


# =================================================================
# Authorization code flow
# =================================================================


def test_authorization_url(provider):
    url = provider.authorization_url(CREDENTIAL, state="abc", redirect_uri=CALLBACK)
    parts = urlsplit(url)
    params = parse_qs(parts.query)

    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert params["client_id"] == ["acme-google-id"]
    assert params["redirect_uri"] == [CALLBACK]
    assert params["state"] == ["abc"]
    assert params["scope"] == ["email profile"]
    assert params["response_type"] == ["code"]


@pytest.mark.asyncio
async def test_code_exchange(provider, stub, provider_config):
    identity = await provider.exchange_and_fetch_identity(CREDENTIAL, "auth-code", CALLBACK)

    assert identity.external_id == "g-123"
    assert identity.email == "Alice@Example.com"
    assert identity.name == "Alice"
    assert identity.picture_url == "https://lh3.example/alice.png"

    token_request = stub.requests[0]
    form = parse_qs(token_request.content.decode())
    assert token_request.method == "POST"
    assert form["code"] == ["auth-code"]
    assert form["client_secret"] == ["acme-google-secret"]
    assert form["redirect_uri"] == [CALLBACK]
    assert form["grant_type"] == ["authorization_code"]

    userinfo_request = stub.requests[1]
    assert userinfo_request.headers["Authorization"] == "Bearer goog-at"


@pytest.mark.asyncio
async def test_code_exchange_rejected(provider, stub):
    stub.token_response = httpx.Response(400, json={"error": "invalid_grant"})

    with pytest.raises(ProviderError):
        await provider.exchange_and_fetch_identity(CREDENTIAL, "bad-code", CALLBACK)
    assert stub.count(provider.config.google_userinfo_url) == 0


@pytest.mark.asyncio
async def test_code_exchange_without_access_token(provider, stub):
    stub.token_response = httpx.Response(200, json={"token_type": "Bearer"})

    with pytest.raises(ProviderError):
        await provider.exchange_and_fetch_identity(CREDENTIAL, "code", CALLBACK)


@pytest.mark.asyncio
async def test_userinfo_without_id(provider, stub):
    stub.userinfo = {"email": "a@example.com", "name": "A"}

    with pytest.raises(ProviderError):
        await provider.exchange_and_fetch_identity(CREDENTIAL, "code", CALLBACK)


@pytest.mark.asyncio
async def test_unverified_email_dropped(provider, stub):
    stub.userinfo["verified_email"] = False

    identity = await provider.exchange_and_fetch_identity(CREDENTIAL, "code", CALLBACK)
    assert identity.email is None
    assert identity.external_id == "g-123"


# =================================================================
# ID tokens
# =================================================================


@pytest.mark.asyncio
async def test_id_token_verified(provider, stub, signing_key):
    stub.jwks_responses = [_jwks(signing_key, "key-1")]

    identity = await provider.identity_from_token(CREDENTIAL, _id_token(signing_key))

    assert identity.external_id == "g-123"
    assert identity.email == "Alice@Example.com"
    assert identity.picture_url == "https://lh3.example/alice.png"


@pytest.mark.asyncio
async def test_id_token_for_other_audience_rejected(provider, stub, signing_key):
    stub.jwks_responses = [_jwks(signing_key, "key-1")]
    token = _id_token(signing_key, aud="someone-elses-app")

    with pytest.raises(ProviderError):
        await provider.identity_from_token(CREDENTIAL, token)


@pytest.mark.asyncio
async def test_id_token_wrong_issuer_rejected(provider, stub, signing_key):
    stub.jwks_responses = [_jwks(signing_key, "key-1")]
    token = _id_token(signing_key, iss="https://evil.example")

    with pytest.raises(ProviderError):
        await provider.identity_from_token(CREDENTIAL, token)


@pytest.mark.asyncio
async def test_expired_id_token_rejected(provider, stub, signing_key):
    stub.jwks_responses = [_jwks(signing_key, "key-1")]
    past = int(time.time()) - 7200
    token = _id_token(signing_key, iat=past, exp=past + 3600)

    with pytest.raises(ProviderError):
        await provider.identity_from_token(CREDENTIAL, token)


@pytest.mark.asyncio
async def test_id_token_signed_by_unknown_key_rejected(provider, stub, signing_key, rotated_key):
    """A token signed by a key not in the JWKS fails even with a matching kid."""
    stub.jwks_responses = [_jwks(signing_key, "key-1")]
    token = _id_token(rotated_key, kid="key-1")

    with pytest.raises(ProviderError):
        await provider.identity_from_token(CREDENTIAL, token)


@pytest.mark.asyncio
async def test_rotated_key_triggers_single_jwks_refresh(provider, stub, signing_key, rotated_key):
    stub.jwks_responses = [_jwks(signing_key, "key-1"), _jwks(rotated_key, "key-2")]

    identity = await provider.identity_from_token(
        CREDENTIAL, _id_token(rotated_key, kid="key-2")
    )

    assert identity.external_id == "g-123"
    assert stub.count(provider.config.google_jwks_url) == 2


@pytest.mark.asyncio
async def test_jwks_cached_between_verifications(provider, stub, signing_key):
    stub.jwks_responses = [_jwks(signing_key, "key-1")]

    await provider.identity_from_token(CREDENTIAL, _id_token(signing_key))
    await provider.identity_from_token(CREDENTIAL, _id_token(signing_key))

    assert stub.count(provider.config.google_jwks_url) == 1
