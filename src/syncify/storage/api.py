"""HTTP client for the syncify web app API (capture, profile, events)."""

from __future__ import annotations

import asyncio
import logging

from syncify.config import SyncifyConfig
from syncify.exceptions import (
    CaptureError,
    CollaboratorError,
    EventLogError,
    ProfileFetchError,
)
from syncify.security import sanitize_log_data
from syncify.storage.base import BaseCaptureSink, BaseEventSink, BaseProfileSource, CaptureRequest

logger = logging.getLogger(__name__)


class SyncifyApiClient(BaseCaptureSink, BaseProfileSource, BaseEventSink):
    """Async client for the web app's conversation, profile and event routes.

    Args:
        base_url: Web app origin, e.g. ``https://app.example.com``.
        auth_token: Bearer token for the signed-in user.
        max_retries: Attempts per call on transport errors.
        retry_delay: Seconds; attempt ``n`` waits ``retry_delay * n`` before retrying.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        transport=None,
    ):
        if not auth_token:
            raise CollaboratorError(
                "An auth token is required. "
                "Sign in to the web app and pass the session token."
            )
        try:
            import httpx  # noqa: F401
        except ImportError:
            raise ImportError(
                "httpx is required for SyncifyApiClient. "
                "Install with: pip install syncify[api]"
            )
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config: SyncifyConfig, auth_token: str, transport=None) -> SyncifyApiClient:
        return cls(
            base_url=config.api_base_url,
            auth_token=auth_token,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            timeout=config.timeout,
            transport=transport,
        )

    async def capture(self, request: CaptureRequest) -> dict:
        try:
            response = await self._request("POST", "/api/conversations", json=request.to_dict())
        except Exception as e:
            raise CaptureError(f"Failed to store conversation: {e}") from e
        if response.is_error:
            raise CaptureError(f"Failed to store conversation: HTTP {response.status_code}")
        result = response.json() if response.content else {}
        logger.info(
            "Stored conversation %s (%d messages)",
            result.get("id"),
            len(request.messages),
        )
        return result

    async def get_profile(self, site: str, provider: str) -> dict | None:
        try:
            response = await self._request(
                "GET",
                "/api/context/profile",
                params={"site": site, "provider": provider},
            )
        except Exception as e:
            raise ProfileFetchError(f"Failed to get context profile: {e}") from e
        if response.status_code == 404:
            return None
        if response.is_error:
            raise ProfileFetchError(f"Failed to get context profile: HTTP {response.status_code}")
        data = response.json()
        # The route wraps the profile as {"success": ..., "data": {...}}.
        if isinstance(data, dict) and "data" in data and "success" in data:
            return data["data"] or None
        return data or None

    async def log_event(self, kind: str, payload: dict) -> None:
        body = {"kind": kind or "unknown", "payload": sanitize_log_data(payload or {})}
        try:
            response = await self._request("POST", "/api/events", json=body)
        except Exception as e:
            raise EventLogError(f"Failed to log event: {e}") from e
        if response.is_error:
            raise EventLogError(f"Failed to log event: HTTP {response.status_code}")

    async def _request(self, method: str, path: str, **kwargs):
        import httpx

        last_error: Exception | None = None
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.auth_token}",
                "Content-Type": "application/json",
            },
        ) as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    return await client.request(method, path, **kwargs)
                except httpx.TransportError as e:
                    last_error = e
                    logger.warning("API call %s %s attempt %d failed: %s", method, path, attempt, e)
                    if attempt < self.max_retries:
                        await asyncio.sleep(self.retry_delay * attempt)
        raise last_error
