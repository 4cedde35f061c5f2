"""Browser authentication flow.

Endpoints used by the hosted login page:
- /api/auth/validate-client  : Check client token, redirect URL and origin
- /api/auth/client-info      : Public client details for rendering the page
- /api/auth/login            : Email/password login
- /api/auth/register         : Email/password registration
- /api/auth/{provider}/start : Redirect to Google or Facebook consent
- /api/auth/{provider}/callback : Provider redirect target

The hosted page is served from the broker's own origin, so the browser's
``Origin`` header never names the tenant; an origin is checked only when the
request carries ``clientOrigin``.

Login and register responses carry ``redirectUrl``: the tenant's redirect URL
with ``auth_token`` appended, for the login page to navigate to.
"""

from fastapi import APIRouter, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ssobroker.api.dependencies import CurrentUser, Orchestrator
from ssobroker.schemas.client import ClientInfo
from ssobroker.schemas.responses import AuthResult
from ssobroker.schemas.user import UserProfile

router = APIRouter(prefix="/api/auth", tags=["Browser Auth"])
user_router = APIRouter(prefix="/api/user", tags=["Browser Auth"])


class ClientRequest(BaseModel):
    """Fields every browser request carries.

    Everything is optional at the schema level so missing values report
    ``MISSING_<FIELD>`` rather than a generic validation error.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str | None = Field(default=None, description="Client token")
    redirect_url: str | None = Field(default=None, description="Tenant redirect URL")
    client_origin: str | None = Field(
        default=None, description="Tenant page origin, checked against the allowed origins when given"
    )


class LoginRequest(ClientRequest):
    email: str | None = None
    password: str | None = None


class RegisterRequest(ClientRequest):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class ValidateClientResponse(BaseModel):
    success: bool = True


@router.post("/validate-client")
async def validate_client(
    request: ClientRequest,
    orchestrator: Orchestrator,
) -> ValidateClientResponse:
    """Validate a client token / redirect URL pair before showing the login page."""
    await orchestrator.validate_client(
        request.token,
        request.redirect_url,
        request.client_origin,
    )
    return ValidateClientResponse()


@router.get("/client-info")
async def client_info(
    orchestrator: Orchestrator,
    token: str | None = Query(default=None, description="Client token"),
) -> ClientInfo:
    """Public client details (name, logo, configured providers)."""
    return await orchestrator.client_info(token)


@router.post("/login")
async def login(
    request: LoginRequest,
    orchestrator: Orchestrator,
) -> AuthResult:
    """Email/password login from the hosted page."""
    return await orchestrator.password_login(
        request.email,
        request.password,
        request.token,
        request.redirect_url,
        client_origin=request.client_origin,
        browser=True,
    )


@router.post("/register")
async def register(
    request: RegisterRequest,
    orchestrator: Orchestrator,
) -> AuthResult:
    """Email/password registration from the hosted page."""
    return await orchestrator.password_register(
        request.name,
        request.email,
        request.password,
        request.token,
        request.redirect_url,
        client_origin=request.client_origin,
        browser=True,
    )


@router.get("/{provider}/start")
async def start(
    provider: str,
    orchestrator: Orchestrator,
    token: str | None = Query(default=None, description="Client token"),
    redirect_url: str | None = Query(default=None, description="Tenant redirect URL"),
) -> RedirectResponse:
    """Send the browser to the provider's consent page."""
    url = await orchestrator.begin_oauth(provider, token, redirect_url)
    return RedirectResponse(url, status_code=302)


@router.get("/{provider}/callback")
async def callback(
    provider: str,
    orchestrator: Orchestrator,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_reason: str | None = None,
) -> RedirectResponse:
    """Provider redirect target; always redirects back to the login page."""
    outcome = await orchestrator.complete_oauth(
        provider, code, state, error=error or error_reason
    )
    return RedirectResponse(outcome.redirect_url, status_code=302)


@user_router.get("/profile")
async def profile(user: CurrentUser) -> UserProfile:
    """Profile of the bearer token holder."""
    return user.to_profile()
