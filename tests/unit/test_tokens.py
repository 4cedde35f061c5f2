"""Test bearer token issuing and verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from ssobroker.auth.errors import ConfigurationError, InvalidTokenError
from ssobroker.auth.tokens import JWTManager, TokenIssuer
from ssobroker.settings import AuthSettings

from tests.conftest import JWT_SECRET

SECRET = "settings-secret-0123456789abcdef0123456789"


def test_issue_and_verify(issuer):
    token = issuer.issue("user-1")
    assert issuer.verify(token) == "user-1"


def test_token_claims(issuer):
    """Claims carry the user id twice and a 365-day expiry."""
    token = issuer.issue("user-1")
    claims = jwt.decode(token, JWT_SECRET, algorithms=["HS256"])

    assert claims["sub"] == "user-1"
    assert claims["userId"] == "user-1"
    assert claims["exp"] - claims["iat"] == 365 * 24 * 3600


def test_tampered_token_rejected(issuer):
    token = issuer.issue("user-1")
    header, payload, signature = token.split(".")
    tampered = f"{header}.{payload}.{signature[:-2]}xx"

    with pytest.raises(InvalidTokenError):
        issuer.verify(tampered)


def test_token_signed_with_other_secret_rejected(issuer):
    other = TokenIssuer(JWTManager("another-secret-0123456789abcdef0123456789"))
    with pytest.raises(InvalidTokenError):
        issuer.verify(other.issue("user-1"))


def test_expired_token_rejected(issuer):
    past = datetime.now(timezone.utc) - timedelta(days=2)
    token = jwt.encode(
        {"sub": "user-1", "userId": "user-1", "iat": past, "exp": past + timedelta(days=1)},
        JWT_SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError) as exc_info:
        issuer.verify(token)
    assert exc_info.value.status_code == 401


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_rejected(issuer, token):
    with pytest.raises(InvalidTokenError):
        issuer.verify(token)


def test_token_without_exp_rejected(issuer):
    token = jwt.encode({"sub": "user-1"}, JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        issuer.verify(token)


def test_from_settings_requires_secret():
    with pytest.raises(ConfigurationError):
        TokenIssuer.from_settings(AuthSettings(jwt_secret=None))


def test_from_settings_uses_configured_expiry():
    issuer = TokenIssuer.from_settings(AuthSettings(jwt_secret=SECRET, token_expire_days=7))
    claims = jwt.decode(issuer.issue("u"), SECRET, algorithms=["HS256"])
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600
