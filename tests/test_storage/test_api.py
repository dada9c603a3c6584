"""Tests for the web app API client."""

import json

import httpx
import pytest

from syncify.config import SyncifyConfig
from syncify.exceptions import CaptureError, CollaboratorError, EventLogError, ProfileFetchError
from syncify.extraction.models import Message, Role
from syncify.storage.api import SyncifyApiClient
from syncify.storage.base import CaptureRequest


def _client(handler, **kwargs):
    kwargs.setdefault("retry_delay", 0)
    return SyncifyApiClient(
        "https://app.example.com/",
        auth_token="tok-123",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _request():
    return CaptureRequest(
        site="https://chatgpt.com/c/1",
        provider="openai",
        messages=[Message(Role.USER, "hello there", "2024-05-01T10:00:00Z")],
        title="hello there",
    )


def test_init_requires_auth_token():
    with pytest.raises(CollaboratorError, match="auth token is required"):
        SyncifyApiClient("https://app.example.com", auth_token="")


def test_from_config():
    config = SyncifyConfig(api_base_url="https://app.example.com", max_retries=5, timeout=3.0)
    client = SyncifyApiClient.from_config(config, auth_token="t")
    assert client.base_url == "https://app.example.com"
    assert client.max_retries == 5
    assert client.timeout == 3.0


@pytest.mark.asyncio
async def test_capture_posts_conversation():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": "conv-1"})

    result = await _client(handler).capture(_request())
    assert result == {"id": "conv-1"}
    assert seen["path"] == "/api/conversations"
    assert seen["auth"] == "Bearer tok-123"
    assert seen["body"]["provider"] == "openai"
    assert seen["body"]["messages"][0] == {
        "role": "user",
        "content": "hello there",
        "timestamp": "2024-05-01T10:00:00Z",
    }


@pytest.mark.asyncio
async def test_capture_http_error():
    client = _client(lambda request: httpx.Response(500))
    with pytest.raises(CaptureError, match="HTTP 500"):
        await client.capture(_request())


@pytest.mark.asyncio
async def test_get_profile_unwraps_data():
    def handler(request):
        assert request.url.params["provider"] == "claude"
        return httpx.Response(200, json={"success": True, "data": {"system_prompt": "Be brief", "facts": []}})

    profile = await _client(handler).get_profile("https://claude.ai/chat", "claude")
    assert profile == {"system_prompt": "Be brief", "facts": []}


@pytest.mark.asyncio
async def test_get_profile_not_found():
    assert await _client(lambda request: httpx.Response(404)).get_profile("s", "p") is None


@pytest.mark.asyncio
async def test_get_profile_server_error():
    with pytest.raises(ProfileFetchError):
        await _client(lambda request: httpx.Response(503)).get_profile("s", "p")


@pytest.mark.asyncio
async def test_log_event_sanitizes_payload():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={})

    await _client(handler).log_event("inject", {"site": "x", "session_id": "abc"})
    assert seen["body"] == {"kind": "inject", "payload": {"site": "x", "session_id": "[REDACTED]"}}


@pytest.mark.asyncio
async def test_log_event_error():
    with pytest.raises(EventLogError):
        await _client(lambda request: httpx.Response(400)).log_event("capture", {})


@pytest.mark.asyncio
async def test_retries_transport_errors():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"id": "conv-2"})

    result = await _client(handler, max_retries=3).capture(_request())
    assert result == {"id": "conv-2"}
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_retries():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProfileFetchError, match="connection refused"):
        await _client(handler, max_retries=2).get_profile("s", "p")
    assert len(attempts) == 2
