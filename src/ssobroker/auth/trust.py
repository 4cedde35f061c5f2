"""Client trust validation.

Every authentication flow starts here: the caller's client token must name a
registered client, the redirect URL must start with one of the client's
registered prefixes, and the calling origin (when known) must be on the
client's allow-list.

The redirect check is a case-insensitive *prefix* match so tenants can vary
query strings. It is also the broker's open-redirect defense, so every path
that sends a browser to a tenant URL goes through ``validate``.
"""

from loguru import logger

from ssobroker.auth.errors import (
    InvalidOriginError,
    InvalidRedirectUrlError,
    UnknownClientError,
)
from ssobroker.schemas.client import Client
from ssobroker.store.base import ClientRepository


def redirect_url_allowed(client: Client, redirect_url: str) -> bool:
    """True if redirect_url case-insensitively starts with a registered prefix."""
    if not redirect_url:
        return False
    candidate = redirect_url.lower()
    return any(
        prefix and candidate.startswith(prefix.lower())
        for prefix in client.redirect_urls
    )


def origin_allowed(client: Client, origin: str) -> bool:
    """True if origin matches the client's allow-list.

    An entry matches when it equals the origin case-insensitively, or when it
    is a leading-wildcard pattern ``*suffix`` and the origin ends with
    ``suffix``. ``*.example.com`` therefore matches ``https://app.example.com``
    but not ``https://example.com``.
    """
    candidate = origin.lower()
    for allowed in client.allowed_origins:
        if not allowed:
            continue
        allowed = allowed.lower()
        if candidate == allowed:
            return True
        if allowed.startswith("*") and candidate.endswith(allowed[1:]):
            return True
    return False


class TrustValidator:
    """Validates client token, redirect URL and origin against the registry."""

    def __init__(self, clients: ClientRepository):
        self.clients = clients

    async def validate(
        self,
        token: str,
        redirect_url: str,
        client_origin: str | None = None,
    ) -> Client:
        """Resolve and vet the client behind a request.

        Args:
            token: Client token presented by the caller
            redirect_url: Where the caller wants the user sent afterwards
            client_origin: Origin of the calling page, if known

        Returns:
            The validated client

        Raises:
            UnknownClientError: No client has this token
            InvalidRedirectUrlError: Redirect URL matches no registered prefix
            InvalidOriginError: Origin supplied and not allowed
        """
        client = await self.clients.find_by_token(token) if token else None
        if not client:
            logger.warning(f"Unknown client token: {_prefix(token)}")
            raise UnknownClientError()

        if not redirect_url_allowed(client, redirect_url):
            logger.warning(
                f"Redirect URL rejected for client {client.id}: {redirect_url}"
            )
            raise InvalidRedirectUrlError()

        if client_origin:
            if not origin_allowed(client, client_origin):
                logger.warning(
                    f"Origin validation failed for client {client.id}: "
                    f"{client_origin} not in {client.allowed_origins}"
                )
                raise InvalidOriginError()
        else:
            logger.warning(
                f"Client origin not provided for client {client.id}; skipping origin check"
            )

        return client


def _prefix(secret: str | None) -> str:
    return f"{secret[:8]}..." if secret else "<empty>"
