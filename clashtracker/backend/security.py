"""Security helpers for GM tokens and deferred-choice correlation tokens."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
from typing import Any


NONCE_BYTES = 12


def generate_nonce() -> str:
    return secrets.token_hex(NONCE_BYTES)


def hash_token(token: str, server_salt: str) -> str:
    """Create deterministic token hash via sha256(token + server_salt)."""
    payload = f"{token}{server_salt}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def verify_token(raw_token: str, expected_hash: str, server_salt: str) -> bool:
    """Compare raw token against a stored hash."""
    return hmac.compare_digest(hash_token(raw_token, server_salt), expected_hash)


def sign_context(context: dict[str, Any], server_salt: str) -> str:
    """Pack a prompt context into an opaque ``<payload>.<signature>`` token."""
    body = json.dumps(context, sort_keys=True, separators=(",", ":")).encode("utf-8")
    payload = base64.urlsafe_b64encode(body).decode("ascii").rstrip("=")
    return f"{payload}.{_signature(payload, server_salt)}"


def unsign_context(token: str, server_salt: str) -> dict[str, Any] | None:
    """Return the embedded context verbatim, or None when the token was altered."""
    payload, separator, signature = token.partition(".")
    if not separator or not hmac.compare_digest(_signature(payload, server_salt), signature):
        return None
    padded = payload + "=" * (-len(payload) % 4)
    try:
        context = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, UnicodeDecodeError):
        return None
    return context if isinstance(context, dict) else None


def _signature(payload: str, server_salt: str) -> str:
    return hmac.new(server_salt.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()
