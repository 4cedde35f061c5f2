"""Provider-agnostic identity and flow models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProviderCredential(BaseModel):
    """A tenant's OAuth application credentials at one provider."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str


class NormalizedIdentity(BaseModel):
    """Identity fetched from a provider, reduced to the fields the broker uses."""

    external_id: str = Field(min_length=1, description="Provider-scoped user id")
    name: str
    email: str | None = None
    picture_url: str | None = None


class FlowState(BaseModel):
    """Tenant context carried through an OAuth redirect in the ``state`` parameter.

    Untrusted on the way back in: decoding it proves nothing, the client token
    and redirect URL are validated again before anything privileged happens.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_token: str = Field(min_length=1)
    redirect_url: str = Field(min_length=1)
