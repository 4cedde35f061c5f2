"""Identity provider interface.

This module provides a pluggable federated login system supporting:
- Google (authorization code flow, or a pre-issued ID token)
- Facebook (authorization code flow, or a pre-issued access token)

Each provider turns its own wire format into a ``NormalizedIdentity``; the
flow orchestrator is provider-agnostic beyond picking the implementation.
"""

from abc import ABC, abstractmethod

from ssobroker.schemas.identity import NormalizedIdentity, ProviderCredential
from ssobroker.schemas.user import AuthProvider


class IdentityProvider(ABC):
    """Abstract upstream OAuth provider.

    All federated providers must implement this interface. Credentials are
    always the tenant's own OAuth application; there is no global fallback.
    """

    name: AuthProvider

    @abstractmethod
    def authorization_url(
        self,
        credential: ProviderCredential,
        state: str,
        redirect_uri: str,
    ) -> str:
        """Build the URL that starts the provider's consent screen.

        Args:
            credential: Tenant OAuth credentials
            state: Encoded flow state
            redirect_uri: Broker callback registered with the provider

        Returns:
            Provider authorization URL
        """
        pass

    @abstractmethod
    async def exchange_and_fetch_identity(
        self,
        credential: ProviderCredential,
        code: str,
        redirect_uri: str,
    ) -> NormalizedIdentity:
        """Exchange an authorization code and fetch the user's profile.

        Args:
            credential: Tenant OAuth credentials
            code: Authorization code from the callback
            redirect_uri: Same redirect URI used to start the flow

        Returns:
            Normalized identity

        Raises:
            ProviderError: Exchange or profile fetch failed, or no external id
        """
        pass

    @abstractmethod
    async def identity_from_token(
        self,
        credential: ProviderCredential,
        token: str,
    ) -> NormalizedIdentity:
        """Verify a token issued to a native/mobile client and fetch identity.

        The token must have been issued to the tenant's own app; a token
        minted for any other app is rejected.

        Args:
            credential: Tenant OAuth credentials
            token: Provider-issued token (ID token or access token)

        Returns:
            Normalized identity

        Raises:
            ProviderError: Token rejected or profile unusable
        """
        pass
