"""REST authentication for native and single-page apps.

Same flows as the browser router, but credentials arrive as JSON (or as a
provider-issued token) and the broker token is returned in the body only.
"""

from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ssobroker.api.dependencies import CurrentUser, Orchestrator
from ssobroker.auth.errors import InvalidRequestError
from ssobroker.schemas.responses import AuthResult
from ssobroker.schemas.user import AuthProvider, UserProfile

router = APIRouter(prefix="/api/rest/auth", tags=["REST Auth"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RestLoginRequest(_CamelModel):
    email: str | None = None
    password: str | None = None
    token: str | None = None
    redirect_url: str | None = None
    client_origin: str | None = None


class RestRegisterRequest(RestLoginRequest):
    name: str | None = None


class GoogleSignInData(_CamelModel):
    id_token: str | None = Field(default=None, description="Google ID token")
    user: dict[str, Any] | None = Field(
        default=None, description="Profile echoed by the native SDK (ignored)"
    )


class GoogleTokenRequest(_CamelModel):
    """Result of a native Google Sign-In plus the client context."""

    type: str | None = Field(default=None, description="SDK result type, 'success' when completed")
    data: GoogleSignInData | None = None
    token: str | None = None
    redirect_url: str | None = None


class FacebookTokenRequest(_CamelModel):
    access_token: str | None = Field(default=None, description="Facebook user access token")
    token: str | None = None
    redirect_url: str | None = None


class UserResponse(_CamelModel):
    success: bool = True
    user: UserProfile


@router.post("/login")
async def login(request: RestLoginRequest, orchestrator: Orchestrator) -> AuthResult:
    """Email/password login."""
    return await orchestrator.password_login(
        request.email,
        request.password,
        request.token,
        request.redirect_url,
        client_origin=request.client_origin,
    )


@router.post("/register")
async def register(request: RestRegisterRequest, orchestrator: Orchestrator) -> AuthResult:
    """Email/password registration."""
    return await orchestrator.password_register(
        request.name,
        request.email,
        request.password,
        request.token,
        request.redirect_url,
        client_origin=request.client_origin,
    )


@router.post("/google")
async def google(
    request: GoogleTokenRequest,
    orchestrator: Orchestrator,
    token: str | None = Query(default=None, description="Client token"),
    redirect_url: str | None = Query(default=None, description="Tenant redirect URL"),
) -> AuthResult:
    """Log in with a Google ID token obtained by a native app.

    ``token`` and ``redirect_url`` may be sent in the query string instead of
    the body; the body wins when both are present.
    """
    if request.type and request.type != "success":
        raise InvalidRequestError("Google sign-in was not completed")

    id_token = request.data.id_token if request.data else None
    return await orchestrator.token_login(
        AuthProvider.GOOGLE,
        id_token,
        request.token or token,
        request.redirect_url or redirect_url,
    )


@router.post("/facebook")
async def facebook(
    request: FacebookTokenRequest,
    orchestrator: Orchestrator,
    token: str | None = Query(default=None, description="Client token"),
    redirect_url: str | None = Query(default=None, description="Tenant redirect URL"),
) -> AuthResult:
    """Log in with a Facebook user access token obtained by a native app.

    Client context may come from the query string, as for Google.
    """
    return await orchestrator.token_login(
        AuthProvider.FACEBOOK,
        request.access_token,
        request.token or token,
        request.redirect_url or redirect_url,
    )


@router.get("/user")
async def current_user(user: CurrentUser) -> UserResponse:
    """Profile of the bearer token holder."""
    return UserResponse(user=user.to_profile())
