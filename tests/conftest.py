"""Shared fixtures: settings, registered clients, repositories and fake providers."""

from urllib.parse import urlencode

import pytest

from ssobroker.auth.errors import ProviderError
from ssobroker.auth.orchestrator import FlowOrchestrator
from ssobroker.auth.passwords import PasswordHasher
from ssobroker.auth.providers import IdentityProvider
from ssobroker.auth.tokens import JWTManager, TokenIssuer
from ssobroker.schemas.client import Client
from ssobroker.schemas.identity import NormalizedIdentity
from ssobroker.schemas.user import AuthProvider
from ssobroker.settings import AuthSettings, ProviderSettings
from ssobroker.store.memory import InMemoryClientRepository, InMemoryUserRepository

JWT_SECRET = "test-jwt-secret-0123456789abcdef0123456789"
BASE_URL = "https://sso.example.com"
REDIRECT_URL = "https://app.acme.com/auth/callback"


class FakeProvider(IdentityProvider):
    """Identity provider returning a preset identity without any network."""

    def __init__(self, name: AuthProvider):
        self.name = name
        self.identity: NormalizedIdentity | None = None
        self.error: Exception | None = None
        self.calls: list[tuple[str, object]] = []

    def authorization_url(self, credential, state, redirect_uri):
        self.calls.append(("authorize", credential))
        query = urlencode({"client_id": credential.client_id, "state": state, "redirect_uri": redirect_uri})
        return f"https://{self.name.value}.example/auth?{query}"

    async def exchange_and_fetch_identity(self, credential, code, redirect_uri):
        self.calls.append(("exchange", code))
        return self._result()

    async def identity_from_token(self, credential, token):
        self.calls.append(("token", token))
        return self._result()

    def _result(self) -> NormalizedIdentity:
        if self.error:
            raise self.error
        if self.identity is None:
            raise ProviderError()
        return self.identity


@pytest.fixture
def auth_config():
    """Auth settings with a signing secret and no state HMAC."""
    return AuthSettings(jwt_secret=JWT_SECRET, state_signing_secret=None)


@pytest.fixture
def provider_config():
    """Provider settings pointing callbacks at a fixed public URL, no retry pause."""
    return ProviderSettings(public_base_url=BASE_URL, retry_wait_seconds=0)


@pytest.fixture
def acme_client():
    """Client with Google and Facebook configured."""
    return Client(
        name="Acme",
        allowed_origins=["https://app.acme.com", "*.acme.dev"],
        redirect_urls=["https://app.acme.com/auth"],
        logo_url="https://app.acme.com/logo.png",
        google_client_id="acme-google-id",
        google_client_secret="acme-google-secret",
        facebook_app_id="acme-fb-id",
        facebook_app_secret="acme-fb-secret",
    )


@pytest.fixture
def basic_client():
    """Client with password login only."""
    return Client(
        name="Basic",
        allowed_origins=["https://basic.example.org"],
        redirect_urls=["https://basic.example.org/"],
    )


@pytest.fixture
def clients(acme_client, basic_client):
    return InMemoryClientRepository([acme_client, basic_client])


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def issuer():
    return TokenIssuer(JWTManager(JWT_SECRET))


@pytest.fixture
def hasher():
    """Cheap bcrypt rounds for tests."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def google():
    return FakeProvider(AuthProvider.GOOGLE)


@pytest.fixture
def facebook():
    return FakeProvider(AuthProvider.FACEBOOK)


@pytest.fixture
def orchestrator(clients, users, issuer, hasher, google, facebook, auth_config, provider_config):
    """Orchestrator over in-memory stores and fake providers."""
    return FlowOrchestrator(
        clients,
        users,
        issuer,
        providers={AuthProvider.GOOGLE: google, AuthProvider.FACEBOOK: facebook},
        hasher=hasher,
        auth_config=auth_config,
        provider_config=provider_config,
    )
