"""Instagram OAuth helpers: CSRF state, callback handling and the token flow."""

import base64
import hashlib
import hmac
import logging
import secrets
import time
from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from .models import AccessToken, InstagramUser

logger = logging.getLogger(__name__)

_STATE_TTL_SECONDS = 600
_STATE_FUTURE_SKEW_SECONDS = 60


class InvalidState(Exception):
    """Callback state is missing, tampered with or expired."""


class AuthorizationDenied(Exception):
    """The user declined the authorization request."""

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class AuthResult(BaseModel):
    """Outcome of a completed authorization."""

    token: AccessToken
    user: InstagramUser


class _StatePayload(BaseModel):
    """Signed body of a CSRF state token."""

    model_config = ConfigDict(strict=True, frozen=True)

    iat: int
    nonce: str

    def is_fresh(self, now: int) -> bool:
        age = now - self.iat
        return -_STATE_FUTURE_SKEW_SECONDS <= age <= _STATE_TTL_SECONDS


def _signature(secret: str, body: bytes) -> bytes:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()


def _unpadded(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _repadded(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def generate_state(secret: str) -> str:
    """Generate a signed stateless CSRF state token: ``<body>.<signature>``."""
    body = _StatePayload(iat=int(time.time()), nonce=secrets.token_urlsafe(16)).model_dump_json().encode("utf-8")
    return ".".join((_unpadded(body), _unpadded(_signature(secret, body))))


def _verified_body(state: str, secret: str) -> Optional[bytes]:
    body_part, _, signature_part = state.partition(".")
    try:
        body, signature = _repadded(body_part), _repadded(signature_part)
    except ValueError:
        return None
    if not hmac.compare_digest(signature, _signature(secret, body)):
        return None
    return body


def validate_state(state: Optional[str], secret: str) -> bool:
    """Check the signature and age of a state token from generate_state."""
    if not state or "." not in state:
        return False

    body = _verified_body(state, secret)
    if body is None:
        return False

    try:
        payload = _StatePayload.model_validate_json(body)
    except ValidationError:
        return False
    return payload.is_fresh(int(time.time()))


def code_from_callback(params: Mapping, secret: str) -> str:
    """Pull the authorization code out of the callback query parameters."""
    if params.get("error"):
        raise AuthorizationDenied(
            params.get("error_description") or params["error"],
            reason=params.get("error_reason"),
        )

    if not validate_state(params.get("state"), secret):
        raise InvalidState("OAuth state is invalid or expired")

    code = params.get("code") or ""
    # Instagram appends #_ to the code
    code = code.removesuffix("#_")
    if not code:
        raise InvalidState("Callback carries no authorization code")
    return code


def complete_auth_flow(instagram, code: str) -> AuthResult:
    """Complete the OAuth flow: code -> short-lived -> long-lived token -> user."""
    # Step 1: Exchange code for short-lived token
    short_token = AccessToken.from_response(instagram.request_token(code))

    # Step 2: Exchange for long-lived token
    token = instagram.exchange_token(short_token)

    # Step 3: Look up the account
    user = instagram.fetch_user_details(token)
    logger.info("auth_complete user_id=%s username=%s", user.id, user.username)

    return AuthResult(token=token, user=user)
