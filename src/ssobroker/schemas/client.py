"""Client (tenant) registration models.

A client is an application registered to delegate authentication to the
broker. Its ``token`` is a capability credential: whoever presents it acts
on behalf of the client, so it is random, unique and never reused.
"""

import secrets
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ssobroker.schemas.identity import ProviderCredential
from ssobroker.schemas.user import AuthProvider


def generate_client_token() -> str:
    """256-bit random client token, hex encoded."""
    return secrets.token_hex(32)


class Client(BaseModel):
    """Registered tenant application."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Client ID")
    token: str = Field(default_factory=generate_client_token, description="Opaque client token")
    name: str = Field(description="Display name")
    allowed_origins: list[str] = Field(
        default_factory=list,
        description="Allowed origins; '*.example.com' matches any subdomain",
    )
    redirect_urls: list[str] = Field(
        default_factory=list,
        description="Allowed redirect URL prefixes",
    )
    logo_url: str | None = Field(default=None, description="Logo shown on the login surface")

    google_client_id: str | None = Field(default=None)
    google_client_secret: str | None = Field(default=None)
    facebook_app_id: str | None = Field(default=None)
    facebook_app_secret: str | None = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def credentials_for(self, provider: AuthProvider) -> ProviderCredential | None:
        """Tenant OAuth credential pair for a provider.

        Returns None when either half is missing: the provider is simply not
        configured for this client.
        """
        if provider == AuthProvider.GOOGLE:
            client_id, secret = self.google_client_id, self.google_client_secret
        elif provider == AuthProvider.FACEBOOK:
            client_id, secret = self.facebook_app_id, self.facebook_app_secret
        else:
            return None

        if not client_id or not secret:
            return None
        return ProviderCredential(client_id=client_id, client_secret=secret)

    def configured_providers(self) -> list[AuthProvider]:
        return [p for p in AuthProvider if self.credentials_for(p) is not None]


class ClientCreate(BaseModel):
    """Administrative input for registering a client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1)
    allowed_origins: list[str] = Field(min_length=1)
    redirect_urls: list[str] = Field(min_length=1)
    logo_url: str | None = None
    google_client_id: str | None = None
    google_client_secret: str | None = None
    facebook_app_id: str | None = None
    facebook_app_secret: str | None = None


class ClientUpdate(BaseModel):
    """Administrative partial update; unset fields are left untouched."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = None
    allowed_origins: list[str] | None = None
    redirect_urls: list[str] | None = None
    logo_url: str | None = None
    google_client_id: str | None = None
    google_client_secret: str | None = None
    facebook_app_id: str | None = None
    facebook_app_secret: str | None = None


class ClientInfo(BaseModel):
    """Public view of a client for the login surface.

    Only public provider identifiers are exposed; secrets never leave the
    registry.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    logo_url: str | None = None
    google_client_id: str | None = None
    facebook_app_id: str | None = None
    providers: list[AuthProvider] = Field(default_factory=list)

    @classmethod
    def from_client(cls, client: Client) -> "ClientInfo":
        providers = client.configured_providers()
        return cls(
            name=client.name,
            logo_url=client.logo_url or None,
            google_client_id=client.google_client_id if AuthProvider.GOOGLE in providers else None,
            facebook_app_id=client.facebook_app_id if AuthProvider.FACEBOOK in providers else None,
            providers=providers,
        )


class ClientSummary(BaseModel):
    """Client reference returned alongside a successful authentication."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    logo_url: str | None = None

    @classmethod
    def from_client(cls, client: Client) -> "ClientSummary":
        return cls(id=client.id, name=client.name, logo_url=client.logo_url or None)
