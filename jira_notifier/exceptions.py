"""Error taxonomy for webhook delivery."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of reasons a delivery can fail."""

    INVALID_PAYLOAD = "invalid_payload"
    TRANSPORT_FAILURE = "transport_failure"
    SERVER_ERROR = "server_error"
    EMPTY_RESPONSE = "empty_response"
    DECODE_FAILURE = "decode_failure"
    RATE_LIMITED = "rate_limited"
    SIGNING_FAILURE = "signing_failure"


class WebhookDeliveryError(Exception):
    """Raised for every failed delivery to the Jenkins app in Jira.

    ``kind`` says which step failed; ``cause`` holds the underlying exception
    when there was one (it is also chained as ``__cause__``).  For
    ``SERVER_ERROR`` the HTTP status and response text are kept for diagnosis.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        self.message = message
        self.kind = kind
        self.cause = cause
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)

    def __repr__(self) -> str:
        return f"WebhookDeliveryError(kind={self.kind.value!r}, message={self.message!r})"


class SiteResolutionError(Exception):
    """Raised by strict site resolution when no single site can be chosen."""
