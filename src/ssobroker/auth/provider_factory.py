"""Identity provider factory.

Creates and caches the provider implementations by name.
"""

from loguru import logger

from ssobroker.auth.errors import UnsupportedProviderError
from ssobroker.auth.provider_facebook import FacebookProvider
from ssobroker.auth.provider_google import GoogleProvider
from ssobroker.auth.providers import IdentityProvider
from ssobroker.schemas.user import AuthProvider


def parse_provider(name: str | AuthProvider) -> AuthProvider:
    """Resolve a provider name from a URL segment or request body.

    Raises:
        UnsupportedProviderError: Unknown provider
    """
    if isinstance(name, AuthProvider):
        return name
    try:
        return AuthProvider((name or "").lower())
    except ValueError as e:
        raise UnsupportedProviderError(
            f"Unsupported provider: {name}. Valid options: "
            f"{', '.join(p.value for p in AuthProvider)}"
        ) from e


def create_identity_providers() -> dict[AuthProvider, IdentityProvider]:
    """Build one instance of every supported provider."""
    logger.info("Initializing identity providers: google, facebook")
    return {
        AuthProvider.GOOGLE: GoogleProvider(),
        AuthProvider.FACEBOOK: FacebookProvider(),
    }


# Global provider instances (lazy-initialized)
_providers: dict[AuthProvider, IdentityProvider] | None = None


def get_identity_providers() -> dict[AuthProvider, IdentityProvider]:
    """Get or create the global provider registry."""
    global _providers

    if _providers is None:
        _providers = create_identity_providers()

    return _providers
