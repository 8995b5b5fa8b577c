"""Short-lived HS256 tokens wrapping a serialized request payload."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict

import jwt

from jira_notifier.exceptions import ErrorKind, WebhookDeliveryError


# -----------------------------------------------------------------------
# Token constants
# -----------------------------------------------------------------------

TOKEN_ISSUER = "jenkins-plugin"
TOKEN_AUDIENCE = "jenkins-forge-app"
TOKEN_ALGORITHM = "HS256"
TOKEN_TTL_SECONDS = 5 * 60
REQUEST_BODY_CLAIM = "request_body_json"


class TokenSigner:
    """Signs an already-serialized payload into a compact JWT.

    The payload string is embedded as-is in the ``request_body_json`` claim;
    it is never re-serialized here.  Validity is fixed at five minutes.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def claims(self, serialized_payload: str) -> Dict[str, Any]:
        issued_at = int(self._clock())
        return {
            "iss": TOKEN_ISSUER,
            "aud": TOKEN_AUDIENCE,
            "iat": issued_at,
            "exp": issued_at + TOKEN_TTL_SECONDS,
            REQUEST_BODY_CLAIM: serialized_payload,
        }

    def sign(self, serialized_payload: str, secret: str) -> str:
        if not secret:
            raise WebhookDeliveryError(
                "Unable to sign the request payload: shared secret is empty",
                ErrorKind.SIGNING_FAILURE,
            )
        try:
            return jwt.encode(
                self.claims(serialized_payload),
                secret.encode("utf-8"),
                algorithm=TOKEN_ALGORITHM,
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise WebhookDeliveryError(
                f"Unable to sign the request payload: {exc}",
                ErrorKind.SIGNING_FAILURE,
                cause=exc,
            ) from exc


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify *token* with *secret* and return its claims.

    Checks signature, expiry, issuer and audience.  Raises
    ``jwt.PyJWTError`` subclasses on any mismatch.
    """
    return jwt.decode(
        token,
        secret.encode("utf-8"),
        algorithms=[TOKEN_ALGORITHM],
        audience=TOKEN_AUDIENCE,
        issuer=TOKEN_ISSUER,
    )
