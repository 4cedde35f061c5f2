"""Test client trust validation: token lookup, redirect prefix, origin allow-list."""

import pytest

from ssobroker.auth.errors import (
    InvalidOriginError,
    InvalidRedirectUrlError,
    UnknownClientError,
)
from ssobroker.auth.trust import TrustValidator, origin_allowed, redirect_url_allowed

from tests.conftest import REDIRECT_URL


@pytest.fixture
def validator(clients):
    return TrustValidator(clients)


# =================================================================
# Redirect URL prefix matching
# =================================================================


def test_redirect_prefix_match(acme_client):
    """Registered prefix with a longer path and query is accepted."""
    assert redirect_url_allowed(acme_client, "https://app.acme.com/auth/callback?x=1")


def test_redirect_match_is_case_insensitive(acme_client):
    assert redirect_url_allowed(acme_client, "HTTPS://APP.ACME.COM/Auth/Done")


def test_redirect_other_host_rejected(acme_client):
    assert not redirect_url_allowed(acme_client, "https://evil.com/auth")


def test_redirect_shorter_than_prefix_rejected(acme_client):
    assert not redirect_url_allowed(acme_client, "https://app.acme.com/")


def test_redirect_empty_rejected(acme_client):
    assert not redirect_url_allowed(acme_client, "")


# =================================================================
# Origin matching
# =================================================================


def test_origin_exact_match(acme_client):
    assert origin_allowed(acme_client, "https://app.acme.com")


def test_origin_exact_match_ignores_case(acme_client):
    assert origin_allowed(acme_client, "HTTPS://App.Acme.com")


def test_origin_wildcard_suffix(acme_client):
    """'*.acme.dev' matches any subdomain."""
    assert origin_allowed(acme_client, "https://staging.acme.dev")
    assert origin_allowed(acme_client, "https://a.b.acme.dev")


def test_origin_wildcard_does_not_match_bare_domain(acme_client):
    assert not origin_allowed(acme_client, "https://acme.dev")


def test_origin_unlisted_rejected(acme_client):
    assert not origin_allowed(acme_client, "https://app.acme.com.evil.io")


# =================================================================
# TrustValidator
# =================================================================


@pytest.mark.asyncio
async def test_validate_returns_client(validator, acme_client):
    client = await validator.validate(acme_client.token, REDIRECT_URL, "https://app.acme.com")
    assert client.id == acme_client.id


@pytest.mark.asyncio
async def test_validate_unknown_token(validator):
    with pytest.raises(UnknownClientError) as exc_info:
        await validator.validate("not-a-token", REDIRECT_URL)
    assert exc_info.value.status_code == 401
    assert exc_info.value.code == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_validate_empty_token(validator):
    with pytest.raises(UnknownClientError):
        await validator.validate("", REDIRECT_URL)


@pytest.mark.asyncio
async def test_validate_bad_redirect(validator, acme_client):
    with pytest.raises(InvalidRedirectUrlError) as exc_info:
        await validator.validate(acme_client.token, "https://evil.com/auth")
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_validate_redirect_of_other_client_rejected(validator, acme_client):
    """Redirect URLs are scoped to the client presenting the token."""
    with pytest.raises(InvalidRedirectUrlError):
        await validator.validate(acme_client.token, "https://basic.example.org/home")


@pytest.mark.asyncio
async def test_validate_bad_origin(validator, acme_client):
    with pytest.raises(InvalidOriginError) as exc_info:
        await validator.validate(acme_client.token, REDIRECT_URL, "https://evil.com")
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_validate_missing_origin_is_allowed(validator, acme_client):
    """No origin (native apps, server-to-server) passes the origin check."""
    client = await validator.validate(acme_client.token, REDIRECT_URL, None)
    assert client.name == "Acme"
