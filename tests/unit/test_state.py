"""Test OAuth flow state encoding."""

import base64
import json

import pytest

from ssobroker.auth.errors import StateDecodeError
from ssobroker.auth.state import decode_state, encode_state


def test_state_wire_format_is_base64_json():
    """Unsigned state is base64 of {"clientToken", "redirectUrl"}."""
    state = encode_state("tok-123", "https://app.acme.com/auth")

    data = json.loads(base64.b64decode(state))
    assert data == {"clientToken": "tok-123", "redirectUrl": "https://app.acme.com/auth"}


def test_state_round_trip():
    flow = decode_state(encode_state("tok-123", "https://app.acme.com/auth?next=/a&b=ü"))
    assert flow.client_token == "tok-123"
    assert flow.redirect_url == "https://app.acme.com/auth?next=/a&b=ü"


def test_decode_state_written_by_other_encoder():
    """Any standard base64 JSON payload with the two keys decodes."""
    raw = base64.b64encode(
        b'{"redirectUrl": "https://x.example/cb", "clientToken": "abc"}'
    ).decode()
    flow = decode_state(raw)
    assert flow.client_token == "abc"


@pytest.mark.parametrize(
    "state",
    [
        None,
        "",
        "not base64 !!",
        base64.b64encode(b"not json").decode(),
        base64.b64encode(b"[1, 2]").decode(),
        base64.b64encode(b'{"clientToken": "abc"}').decode(),
        base64.b64encode(b'{"clientToken": "", "redirectUrl": "https://x"}').decode(),
        base64.b64encode(b"\xff\xfe").decode(),
    ],
)
def test_malformed_state_rejected(state):
    with pytest.raises(StateDecodeError) as exc_info:
        decode_state(state)
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid client or redirect URL"


# =================================================================
# Signed state
# =================================================================


def test_signed_state_round_trip():
    state = encode_state("tok-123", "https://app.acme.com/auth", secret="s3cret")
    assert "." in state

    flow = decode_state(state, secret="s3cret")
    assert flow.client_token == "tok-123"


def test_signed_state_tampered_payload_rejected():
    state = encode_state("tok-123", "https://app.acme.com/auth", secret="s3cret")
    _, signature = state.split(".")
    forged = encode_state("tok-123", "https://evil.com/auth")

    with pytest.raises(StateDecodeError):
        decode_state(f"{forged}.{signature}", secret="s3cret")


def test_signed_state_wrong_secret_rejected():
    state = encode_state("tok-123", "https://app.acme.com/auth", secret="s3cret")
    with pytest.raises(StateDecodeError):
        decode_state(state, secret="other")


def test_unsigned_state_rejected_when_secret_configured():
    state = encode_state("tok-123", "https://app.acme.com/auth")
    with pytest.raises(StateDecodeError):
        decode_state(state, secret="s3cret")


def test_non_ascii_signature_rejected():
    state = encode_state("tok-123", "https://app.acme.com/auth")
    with pytest.raises(StateDecodeError):
        decode_state(f"{state}.ünïcode", secret="s3cret")
