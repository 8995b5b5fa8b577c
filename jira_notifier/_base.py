"""Shared constants and helpers used by both sync and async clients."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import PydanticUserError, ValidationError
from pydantic_core import PydanticSerializationError

from jira_notifier.exceptions import ErrorKind, WebhookDeliveryError
from jira_notifier.rate_limiter import RateLimiter
from jira_notifier.serialization import JsonSerializer

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
JWT_CONTENT_TYPE = "application/jwt"
DEFAULT_TIMEOUT = 10.0

_TARGET = "Jenkins app in Jira"


def _build_headers(content_type: str) -> Dict[str, str]:
    return {"Content-Type": content_type}


def _check_url(url: str) -> None:
    if not url or not url.strip():
        raise WebhookDeliveryError(
            "Invalid destination URL: URL is empty",
            ErrorKind.INVALID_PAYLOAD,
        )


def _serialize(serializer: JsonSerializer, payload: Any) -> str:
    try:
        text = serializer.dumps(payload)
        # lone surrogates survive json.dumps(ensure_ascii=False) and only fail here
        text.encode("utf-8")
    except (TypeError, ValueError, PydanticSerializationError) as exc:
        raise WebhookDeliveryError(
            f"Unable to create the request payload: {exc}",
            ErrorKind.INVALID_PAYLOAD,
            cause=exc,
        ) from exc
    return text


def _check_rate_limit(rate_limiter: Optional[RateLimiter]) -> None:
    if rate_limiter is None:
        return
    allowed, _remaining, retry_after = rate_limiter.consume()
    if not allowed:
        hint = f", retry in {retry_after:.1f}s" if math.isfinite(retry_after) else ""
        raise WebhookDeliveryError(
            f"Rate limit reached{hint}",
            ErrorKind.RATE_LIMITED,
        )


def _transport_failure(exc: Exception) -> WebhookDeliveryError:
    return WebhookDeliveryError(
        f"Server exception when submitting update to {_TARGET}: {exc}",
        ErrorKind.TRANSPORT_FAILURE,
        cause=exc,
    )


def _request_failure(exc: httpx.RequestError) -> WebhookDeliveryError:
    """Map an httpx error raised while sending or reading to its kind."""
    if isinstance(exc, httpx.DecodingError):
        return WebhookDeliveryError(
            f"Unable to read the response from {_TARGET}: {exc}",
            ErrorKind.DECODE_FAILURE,
            cause=exc,
        )
    return _transport_failure(exc)


def _check_shape(serializer: JsonSerializer, response_shape: Type[T]) -> None:
    """Fail before any I/O when no decoder can be built for *response_shape*."""
    try:
        serializer.adapter(response_shape)
    except (PydanticUserError, TypeError) as exc:
        raise WebhookDeliveryError(
            f"Unable to read responses from {_TARGET} as {response_shape!r}: {exc}",
            ErrorKind.DECODE_FAILURE,
            cause=exc,
        ) from exc


def _raise_for_status(status_code: int, body: bytes) -> None:
    """Raise SERVER_ERROR for anything outside 2xx.

    The body has already been read (and the connection released) by the
    caller; only status and body text are reported, never headers.
    """
    if 200 <= status_code < 300:
        return
    text = body.decode("utf-8", errors="replace")
    if text:
        logger.error(f"Error response body when submitting update to {_TARGET}: {text}")
    raise WebhookDeliveryError(
        f"Error response code {status_code} when submitting update to {_TARGET}",
        ErrorKind.SERVER_ERROR,
        status_code=status_code,
        response_body=text,
    )


def _decode(serializer: JsonSerializer, body: bytes, response_shape: Type[T]) -> T:
    if not body:
        raise WebhookDeliveryError(
            f"Empty response body when submitting update to {_TARGET}",
            ErrorKind.EMPTY_RESPONSE,
        )
    try:
        return serializer.loads(body, response_shape)
    except (ValidationError, ValueError) as exc:
        raise WebhookDeliveryError(
            f"Unable to read the response from {_TARGET}: {exc}",
            ErrorKind.DECODE_FAILURE,
            cause=exc,
        ) from exc


def _invalid_url(url: str, exc: Exception) -> WebhookDeliveryError:
    return WebhookDeliveryError(
        f"Invalid destination URL {url!r}: {exc}",
        ErrorKind.INVALID_PAYLOAD,
        cause=exc,
    )
