"""Tests for AsyncWebhookClient against the ASGI stand-in app."""

from __future__ import annotations

import asyncio
import json
from typing import Dict, Optional

import httpx
import pytest

from jira_notifier import AsyncWebhookClient, ErrorKind, WebhookDeliveryError
from jira_notifier.models import JenkinsAppResponse
from jira_notifier.rate_limiter import TokenBucket

from tests.conftest import SECRET, WEBHOOK_URL


class _AsyncTrackingStream(httpx.AsyncByteStream):
    """Async response body stream that records whether it was closed."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.closed = False

    async def __aiter__(self):
        yield self.data

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_send_round_trip(async_client: AsyncWebhookClient):
    payload = {"pipeline": "main", "state": "in_progress"}
    result = await async_client.send("https://example.test/echo", payload, dict)
    assert result == payload


@pytest.mark.asyncio
async def test_send_signed_round_trip(async_client: AsyncWebhookClient, jenkins_app):
    result = await async_client.send_signed(WEBHOOK_URL, SECRET, {"status": "ok"}, JenkinsAppResponse)
    assert result.success is True
    record = jenkins_app.state.received[-1]
    assert record["content_type"] == "application/jwt"
    assert json.loads(record["claims"]["request_body_json"]) == {"status": "ok"}


@pytest.mark.asyncio
async def test_server_error(async_client: AsyncWebhookClient):
    with pytest.raises(WebhookDeliveryError) as exc_info:
        await async_client.send("https://example.test/status/502", {"status": "ok"}, dict)
    assert exc_info.value.kind is ErrorKind.SERVER_ERROR
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_empty_response(async_client: AsyncWebhookClient):
    with pytest.raises(WebhookDeliveryError) as exc_info:
        await async_client.send("https://example.test/empty", {"status": "ok"}, dict)
    assert exc_info.value.kind is ErrorKind.EMPTY_RESPONSE


@pytest.mark.asyncio
async def test_decode_failure(async_client: AsyncWebhookClient):
    with pytest.raises(WebhookDeliveryError) as exc_info:
        await async_client.send("https://example.test/malformed", {"status": "ok"}, dict)
    assert exc_info.value.kind is ErrorKind.DECODE_FAILURE
    assert exc_info.value.cause is not None


@pytest.mark.asyncio
async def test_timeout_is_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AsyncWebhookClient(http_client=http)
        with pytest.raises(WebhookDeliveryError) as exc_info:
            await client.send(WEBHOOK_URL, {"status": "ok"}, dict)
    assert exc_info.value.kind is ErrorKind.TRANSPORT_FAILURE
    assert isinstance(exc_info.value.cause, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_rate_limited_call_makes_no_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"n": len(calls)})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AsyncWebhookClient(http_client=http, rate_limiter=TokenBucket(rate=0.0, burst=1))
        assert await client.send(WEBHOOK_URL, {"n": 1}, dict) == {"n": 1}
        with pytest.raises(WebhookDeliveryError) as exc_info:
            await client.send(WEBHOOK_URL, {"n": 2}, dict)
    assert exc_info.value.kind is ErrorKind.RATE_LIMITED
    assert len(calls) == 1



@pytest.mark.asyncio
async def test_empty_secret_is_signing_failure(async_client: AsyncWebhookClient, jenkins_app):
    with pytest.raises(WebhookDeliveryError) as exc_info:
        await async_client.send_signed(WEBHOOK_URL, "", {"status": "ok"}, dict)
    assert exc_info.value.kind is ErrorKind.SIGNING_FAILURE
    assert jenkins_app.state.received == []


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["", "   "])
async def test_empty_url_is_invalid_payload(async_client: AsyncWebhookClient, url: str):
    with pytest.raises(WebhookDeliveryError) as exc_info:
        await async_client.send(url, {"status": "ok"}, dict)
    assert exc_info.value.kind is ErrorKind.INVALID_PAYLOAD


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"when": object()}, {"s": "\ud800"}])
async def test_bad_payload_is_invalid_payload(async_client: AsyncWebhookClient, payload):
    with pytest.raises(WebhookDeliveryError) as exc_info:
        await async_client.send_signed(WEBHOOK_URL, SECRET, payload, dict)
    assert exc_info.value.kind is ErrorKind.INVALID_PAYLOAD
    assert exc_info.value.cause is not None


@pytest.mark.asyncio
async def test_unbuildable_response_shape(async_client: AsyncWebhookClient, jenkins_app):
    class Plain:
        pass

    with pytest.raises(WebhookDeliveryError) as exc_info:
        await async_client.send(WEBHOOK_URL, {"status": "ok"}, Plain)
    assert exc_info.value.kind is ErrorKind.DECODE_FAILURE
    assert jenkins_app.state.received == []


@pytest.mark.asyncio
async def test_corrupt_compressed_body_is_decode_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not gzip", headers={"Content-Encoding": "gzip"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AsyncWebhookClient(http_client=http)
        with pytest.raises(WebhookDeliveryError) as exc_info:
            await client.send(WEBHOOK_URL, {"status": "ok"}, dict)
    assert exc_info.value.kind is ErrorKind.DECODE_FAILURE
    assert isinstance(exc_info.value.cause, httpx.DecodingError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body, expected",
    [
        (200, b'{"success": true}', None),
        (500, b"internal error", ErrorKind.SERVER_ERROR),
        (200, b"{oops", ErrorKind.DECODE_FAILURE),
    ],
)
async def test_response_closed(status: int, body: bytes, expected: Optional[ErrorKind]):
    streams: Dict[str, _AsyncTrackingStream] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        streams["last"] = _AsyncTrackingStream(body)
        return httpx.Response(status, stream=streams["last"])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AsyncWebhookClient(http_client=http)
        if expected is None:
            await client.send(WEBHOOK_URL, {"status": "ok"}, dict)
        else:
            with pytest.raises(WebhookDeliveryError) as exc_info:
                await client.send(WEBHOOK_URL, {"status": "ok"}, dict)
            assert exc_info.value.kind is expected
    assert streams["last"].closed is True



@pytest.mark.asyncio
async def test_cancellation_propagates():
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(10)
        return httpx.Response(200, json={})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = AsyncWebhookClient(http_client=http)
        task = asyncio.create_task(client.send(WEBHOOK_URL, {"status": "ok"}, dict))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


@pytest.mark.asyncio
async def test_owned_client_closed_on_exit():
    async with AsyncWebhookClient(timeout=1.0) as client:
        inner = client._client
    assert inner.is_closed is True
