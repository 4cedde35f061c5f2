"""FastAPI dependencies.

Wires the flow orchestrator and bearer-token authentication into routes.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from ssobroker.auth.errors import InvalidTokenError
from ssobroker.auth.orchestrator import FlowOrchestrator
from ssobroker.auth.tokens import TokenIssuer
from ssobroker.schemas.user import User
from ssobroker.store.factory import get_repositories

# Bearer token scheme (auto_error=False so a missing token reports INVALID_TOKEN)
bearer_scheme = HTTPBearer(auto_error=False)

# Global orchestrator instance (lazy-initialized)
_orchestrator: FlowOrchestrator | None = None


def get_orchestrator() -> FlowOrchestrator:
    """Get or create the orchestrator from application settings.

    Raises:
        ConfigurationError: No JWT secret configured
    """
    global _orchestrator

    if _orchestrator is None:
        clients, users = get_repositories()
        _orchestrator = FlowOrchestrator(clients, users, TokenIssuer.from_settings())
        logger.info("Flow orchestrator initialized")

    return _orchestrator


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    orchestrator: Annotated[FlowOrchestrator, Depends(get_orchestrator)],
) -> User:
    """Resolve the user behind the Authorization bearer token.

    Raises:
        InvalidTokenError: No token, or token invalid/expired
        UserNotFoundError: Token valid but user no longer exists
    """
    if not credentials:
        raise InvalidTokenError("Authentication required")

    user = await orchestrator.current_user(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user


# Type aliases for convenience
Orchestrator = Annotated[FlowOrchestrator, Depends(get_orchestrator)]
CurrentUser = Annotated[User, Depends(get_current_user)]
