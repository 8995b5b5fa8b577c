"""
Shared fixtures: a stand-in for the Jenkins app webhook in Jira.

Sync tests reach it through ``fastapi.testclient.TestClient`` (an
``httpx.Client``), async tests through ``httpx.ASGITransport``.  The
TestClient transport routes by path only, so absolute URLs such as
``https://example.test/webhook`` land on the app.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

import httpx
import jwt as pyjwt
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from jira_notifier import AsyncWebhookClient, WebhookClient, decode_token

SECRET = "s3cr3t"
WEBHOOK_URL = "https://example.test/webhook"


def create_jenkins_app(secret: str = SECRET) -> FastAPI:
    """Minimal webhook receiver that verifies tokens and echoes payloads."""
    app = FastAPI()
    received: List[Dict[str, Any]] = []
    app.state.received = received

    @app.post("/webhook")
    async def webhook(request: Request):
        raw = (await request.body()).decode("utf-8")
        content_type = request.headers.get("content-type", "")
        record: Dict[str, Any] = {"content_type": content_type, "body": raw}
        if content_type.startswith("application/jwt"):
            try:
                claims = decode_token(raw, secret)
            except pyjwt.PyJWTError as exc:
                return JSONResponse(status_code=401, content={"error": str(exc)})
            record["claims"] = claims
            payload = json.loads(claims["request_body_json"])
        else:
            payload = json.loads(raw)
        record["payload"] = payload
        received.append(record)
        return {"success": True, "message": "accepted", "echo": payload}

    @app.post("/echo")
    async def echo(request: Request):
        return json.loads(await request.body())

    @app.post("/status/{code}")
    async def status(code: int):
        return Response(content=b'{"error":"nope"}', status_code=code, media_type="application/json")

    @app.post("/empty")
    async def empty():
        return Response(status_code=200)

    @app.post("/malformed")
    async def malformed():
        return Response(content=b"{not json", status_code=200, media_type="application/json")

    @app.post("/rejected")
    async def rejected():
        return {"success": False, "message": "unknown pipeline"}

    @app.post("/silent")
    async def silent():
        return {}

    return app


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """httpx client whose transport calls *handler* (which may raise)."""
    return httpx.Client(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def jenkins_app() -> FastAPI:
    return create_jenkins_app()


@pytest.fixture()
def test_app(jenkins_app):
    with TestClient(jenkins_app) as tc:
        yield tc


@pytest.fixture()
def client(test_app) -> WebhookClient:
    """Sync client sharing the TestClient transport."""
    with WebhookClient(http_client=test_app) as c:
        yield c


@pytest_asyncio.fixture()
async def async_client(jenkins_app):
    """Async client backed by the ASGI transport."""
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=jenkins_app))
    c = AsyncWebhookClient(http_client=http)
    yield c
    await http.aclose()
