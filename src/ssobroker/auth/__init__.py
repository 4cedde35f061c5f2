"""Authentication core for the SSO broker.

This package provides:
- Client/redirect/origin trust validation
- OAuth flow state encoding
- Google and Facebook identity providers
- Federated identity linking
- Bearer token issuing (HS256 JWT)

The flow orchestrator lives in ``ssobroker.auth.orchestrator`` and is wired
to FastAPI in ``ssobroker.api.dependencies``.
"""

from ssobroker.auth.errors import BrokerError
from ssobroker.auth.state import decode_state, encode_state
from ssobroker.auth.tokens import JWTManager, TokenIssuer

__all__ = [
    "BrokerError",
    "JWTManager",
    "TokenIssuer",
    "decode_state",
    "encode_state",
]
