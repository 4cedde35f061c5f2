"""Data models for clients, users and authentication flows."""

from ssobroker.schemas.client import (
    Client,
    ClientCreate,
    ClientInfo,
    ClientSummary,
    ClientUpdate,
    generate_client_token,
)
from ssobroker.schemas.identity import FlowState, NormalizedIdentity, ProviderCredential
from ssobroker.schemas.responses import AuthResult, CallbackOutcome
from ssobroker.schemas.user import AuthProvider, User, UserProfile

__all__ = [
    "AuthProvider",
    "AuthResult",
    "CallbackOutcome",
    "Client",
    "ClientCreate",
    "ClientInfo",
    "ClientSummary",
    "ClientUpdate",
    "FlowState",
    "NormalizedIdentity",
    "ProviderCredential",
    "User",
    "UserProfile",
    "generate_client_token",
]
