"""OAuth flow state codec.

Carries the tenant context (client token + redirect URL) through the
provider's redirect as base64(JSON). This is transport obfuscation, not
integrity: decoded state is re-validated against the client registry before
it is acted upon.

With a signing secret the encoded payload gets an HMAC-SHA256 suffix
(``<payload>.<hexdigest>``) and unsigned or altered state fails to decode.
"""

import base64
import binascii
import hashlib
import hmac
import json

from pydantic import ValidationError

from ssobroker.auth.errors import StateDecodeError
from ssobroker.schemas.identity import FlowState


def encode_state(client_token: str, redirect_url: str, secret: str | None = None) -> str:
    """Encode tenant context for the OAuth ``state`` parameter."""
    payload = json.dumps(
        {"clientToken": client_token, "redirectUrl": redirect_url},
        separators=(",", ":"),
    )
    encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
    if secret:
        return f"{encoded}.{_sign(encoded, secret)}"
    return encoded


def decode_state(state: str | None, secret: str | None = None) -> FlowState:
    """Decode an OAuth ``state`` parameter.

    Raises:
        StateDecodeError: Anything other than a well-formed (and, with a
            secret, correctly signed) state
    """
    if not state:
        raise StateDecodeError()

    encoded = state
    if secret:
        encoded, _, signature = state.rpartition(".")
        expected = _sign(encoded, secret)
        if not encoded or not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
            raise StateDecodeError()

    try:
        raw = base64.b64decode(encoded, validate=True)
        data = json.loads(raw.decode("utf-8"))
        return FlowState.model_validate(data)
    except (binascii.Error, ValueError, ValidationError) as e:
        # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
        raise StateDecodeError() from e


def _sign(encoded: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), encoded.encode("utf-8"), hashlib.sha256).hexdigest()
