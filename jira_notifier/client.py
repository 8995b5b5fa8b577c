"""Synchronous webhook client (uses httpx)."""

from __future__ import annotations

import logging
from typing import Any, Optional, Type, TypeVar

import httpx

from jira_notifier._base import (
    DEFAULT_TIMEOUT,
    JSON_CONTENT_TYPE,
    JWT_CONTENT_TYPE,
    _build_headers,
    _check_rate_limit,
    _check_shape,
    _check_url,
    _decode,
    _invalid_url,
    _raise_for_status,
    _request_failure,
    _serialize,
)
from jira_notifier.rate_limiter import RateLimiter
from jira_notifier.serialization import JsonSerializer
from jira_notifier.signing import TokenSigner

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WebhookClient:
    """Delivers one request to one Jenkins app webhook per call.

    Usage::

        with WebhookClient(timeout=10.0) as client:
            result = client.send_signed(url, secret, payload, JenkinsAppResponse)

    Every failure is raised as :class:`WebhookDeliveryError`.  The client
    keeps no per-call state and may be shared between threads; pass your own
    ``http_client`` to control pooling and timeouts (it will not be closed
    by :meth:`close`).
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
        serializer: Optional[JsonSerializer] = None,
        signer: Optional[TokenSigner] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.Client(timeout=timeout)
        self._serializer = serializer or JsonSerializer()
        self._signer = signer or TokenSigner()
        self._rate_limiter = rate_limiter

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "WebhookClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def send(self, url: str, payload: Any, response_shape: Type[T]) -> T:
        """POST *payload* as JSON and decode the reply into *response_shape*."""
        _check_url(url)
        _check_shape(self._serializer, response_shape)
        body = _serialize(self._serializer, payload)
        return self._post(url, body, JSON_CONTENT_TYPE, response_shape)

    def send_signed(self, url: str, secret: str, payload: Any, response_shape: Type[T]) -> T:
        """POST *payload* wrapped in a token signed with *secret*."""
        _check_url(url)
        _check_shape(self._serializer, response_shape)
        body = _serialize(self._serializer, payload)
        token = self._signer.sign(body, secret)
        return self._post(url, token, JWT_CONTENT_TYPE, response_shape)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _post(self, url: str, content: str, content_type: str, response_shape: Type[T]) -> T:
        _check_rate_limit(self._rate_limiter)
        try:
            request = self._client.build_request(
                "POST", url, content=content.encode("utf-8"), headers=_build_headers(content_type)
            )
        except httpx.InvalidURL as exc:
            raise _invalid_url(url, exc) from exc

        try:
            resp = self._client.send(request, stream=True)
        except httpx.UnsupportedProtocol as exc:
            raise _invalid_url(url, exc) from exc
        except httpx.RequestError as exc:
            raise _request_failure(exc) from exc

        try:
            body = resp.read()
        except httpx.RequestError as exc:
            raise _request_failure(exc) from exc
        finally:
            resp.close()

        _raise_for_status(resp.status_code, body)
        logger.debug(f"Delivered {content_type} update to {url} (HTTP {resp.status_code})")
        return _decode(self._serializer, body, response_shape)
