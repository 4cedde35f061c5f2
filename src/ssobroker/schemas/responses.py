"""Results returned by the flow orchestrator."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ssobroker.schemas.client import ClientSummary
from ssobroker.schemas.user import UserProfile


class AuthResult(BaseModel):
    """Successful authentication."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    token: str = Field(description="Broker bearer token")
    user: UserProfile
    client: ClientSummary
    redirect_url: str | None = Field(
        default=None,
        description="Tenant redirect URL with auth_token appended (browser flows only)",
    )


class CallbackOutcome(BaseModel):
    """Terminal state of an OAuth callback: always a redirect."""

    redirect_url: str
    success: bool
    reason: str | None = Field(default=None, description="Internal rejection code, never shown to users")
