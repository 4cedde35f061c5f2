"""Bearer token issuer.

The broker's own credential handed to tenants after a successful login: a
JWT bound to the user id. HS256 with a deployment secret by default; an
asymmetric algorithm works when a separate verification key is supplied.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt as pyjwt
from loguru import logger

from ssobroker.auth.errors import ConfigurationError, InvalidTokenError
from ssobroker.settings import AuthSettings, settings


class JWTManager:
    """Thin wrapper over PyJWT encode/decode with a fixed key pair."""

    def __init__(
        self,
        signing_key: str,
        verification_key: str | None = None,
        algorithm: str = "HS256",
    ):
        """Initialize JWT manager.

        Args:
            signing_key: Shared secret (HS*) or private key in PEM format
            verification_key: Public key in PEM format (defaults to signing_key)
            algorithm: JWT algorithm
        """
        self.signing_key = signing_key
        self.verification_key = verification_key or signing_key
        self.algorithm = algorithm

    def encode_token(self, payload: dict[str, Any]) -> str:
        """Encode a JWT.

        Example:
            >>> manager = JWTManager("secret")
            >>> manager.encode_token({"sub": "user-123"}).startswith("eyJ")
            True
        """
        return pyjwt.encode(payload, self.signing_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and verify a JWT.

        Raises:
            jwt.ExpiredSignatureError: Token expired
            jwt.InvalidTokenError: Token invalid
        """
        return pyjwt.decode(
            token,
            self.verification_key,
            algorithms=[self.algorithm],
            options={"verify_exp": True, "require": ["exp", "sub"]},
        )


class TokenIssuer:
    """Issues and verifies the broker's bearer tokens.

    Tokens are unforgeable without the signing secret; ``verify`` fails
    closed on anything tampered, expired or malformed.
    """

    def __init__(self, manager: JWTManager, expire_days: int = 365):
        self.manager = manager
        self.expire_days = expire_days

    @classmethod
    def from_settings(cls, config: AuthSettings | None = None) -> "TokenIssuer":
        """Build an issuer from configuration.

        Raises:
            ConfigurationError: No signing secret configured
        """
        config = config or settings.auth
        if not config.jwt_secret:
            raise ConfigurationError(
                "Bearer token signing secret is not configured (SSOBROKER_AUTH__JWT_SECRET)"
            )
        return cls(
            JWTManager(config.jwt_secret, algorithm=config.jwt_algorithm),
            expire_days=config.token_expire_days,
        )

    def issue(self, user_id: str) -> str:
        """Mint a bearer token for a user."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "userId": user_id,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(days=self.expire_days)).timestamp()),
        }
        return self.manager.encode_token(payload)

    def verify(self, token: str) -> str:
        """Return the user id a bearer token was issued for.

        Raises:
            InvalidTokenError: Token tampered, expired or malformed
        """
        if not token:
            raise InvalidTokenError()
        try:
            payload = self.manager.decode_token(token)
        except pyjwt.ExpiredSignatureError as e:
            logger.info("Bearer token expired")
            raise InvalidTokenError() from e
        except pyjwt.InvalidTokenError as e:
            logger.warning(f"Bearer token rejected: {e}")
            raise InvalidTokenError() from e

        user_id = payload.get("sub") or payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError()
        return user_id
