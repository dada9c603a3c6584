"""Turn observed page signals into capture events and context injections.

One engine serves one page load. It owns the debounce timestamp and the
resolved site adapter; everything else is delegated to collaborators.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable
from urllib.parse import urlparse

from syncify.config import SyncifyConfig
from syncify.exceptions import MessageValidationError, ProfileFetchError
from syncify.extraction.adapters import SiteAdapter, is_ai_site, resolve_adapter
from syncify.extraction.dom import extract_generic_messages
from syncify.extraction.models import Message, MutationRecord, ObservedFrame, ObservedRequest, RawMessage, Role
from syncify.extraction.observer import BaseDomObserver, BaseNetworkObserver
from syncify.injection.composer import generate_context_text
from syncify.injection.inputs import inject_into_input, is_injecting, is_new_message_input, mark_injecting
from syncify.injection.models import InputElement
from syncify.redaction.engine import RedactionEngine
from syncify.security import SecurityValidator, sanitize_log_data
from syncify.storage.base import BaseCaptureSink, BaseEventSink, BaseProfileSource, CaptureRequest

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 50


def generate_conversation_title(messages: list[Message], domain: str) -> str:
    if not messages:
        return "Empty conversation"
    first_user = next((m for m in messages if m.role is Role.USER), None)
    if first_user is None:
        return f"Conversation on {domain}"
    content = first_user.content
    if len(content) > MAX_TITLE_LENGTH:
        return content[: MAX_TITLE_LENGTH - 3] + "..."
    return content


class ExtractionEngine:
    """Capture chat turns from one page and inject stored context into it.

    Args:
        page_url: URL of the observed page; its hostname selects the adapter.
        capture_sink: Receives validated, redacted message batches.
        profile_source: Supplies context profiles for injection (optional).
        event_sink: Receives capture/inject/error telemetry (optional).
        config: Engine settings; defaults to ``SyncifyConfig()``.
        clock: Monotonic seconds, used for the capture debounce window.
        redaction_engine: Applied to captured content when ``redact_captures``.
    """

    def __init__(
        self,
        page_url: str,
        capture_sink: BaseCaptureSink,
        profile_source: BaseProfileSource | None = None,
        event_sink: BaseEventSink | None = None,
        config: SyncifyConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        redaction_engine: RedactionEngine | None = None,
    ):
        self.config = config or SyncifyConfig()
        self.page_url = page_url
        self.hostname = (urlparse(page_url).hostname or "").lower()
        self.adapter: SiteAdapter = resolve_adapter(self.hostname, self.config.min_dom_text_length)
        self.capture_sink = capture_sink
        self.profile_source = profile_source
        self.event_sink = event_sink
        self.validator = SecurityValidator(
            max_content_length=self.config.max_content_length,
            allowed_domains=self.config.allowed_domains,
        )
        self.redaction_engine = redaction_engine or RedactionEngine()
        self._clock = clock
        self._last_capture: float | None = None

    @property
    def provider_name(self) -> str:
        return self.adapter.provider_name

    def attach(self, observer: BaseNetworkObserver | BaseDomObserver, ai_sites_only: bool = True) -> bool:
        """Register channel handlers on ``observer``; False if the page is skipped."""
        if ai_sites_only and not is_ai_site(self.hostname):
            logger.debug("Not an AI site, skipping %s", self.hostname)
            return False
        if isinstance(observer, BaseNetworkObserver):
            observer.add_request_listener(self.handle_request)
            observer.add_frame_listener(self.handle_socket_frame)
        if isinstance(observer, BaseDomObserver):
            observer.add_mutation_listener(self.handle_mutations)
        logger.info("Attached %s adapter to %s", self.provider_name, self.hostname)
        return True

    # Channels

    async def handle_request(self, request: ObservedRequest) -> bool:
        if not self.config.auto_capture:
            return False
        try:
            if not self.adapter.is_chat_request(request.url, request.method):
                return False
            messages = self.adapter.extract_from_request(request)
        except Exception:
            logger.exception("Error extracting %s messages from %s", self.provider_name, request.url)
            return False
        if not messages:
            return False
        return await self.capture(messages)

    async def handle_socket_frame(self, frame: ObservedFrame) -> bool:
        if not self.config.auto_capture:
            return False
        try:
            messages = self.adapter.extract_from_socket(frame)
        except Exception:
            logger.exception("Error extracting %s messages from socket frame", self.provider_name)
            return False
        if not messages:
            return False
        return await self.capture(messages)

    async def handle_mutations(self, records: list[MutationRecord]) -> bool:
        if not self.config.auto_capture:
            return False
        try:
            messages = self.adapter.extract_from_dom(records)
            # Generic scan only when the adapter recognized nothing at all.
            if not messages and not self.adapter.has_dom_matches(records):
                messages = extract_generic_messages(records, self.config.min_dom_text_length)
        except Exception:
            logger.exception("Error handling DOM changes")
            return False
        if not messages:
            return False
        return await self.capture(messages)

    # Capture

    async def capture(self, raw_messages: list[RawMessage]) -> bool:
        """Validate, filter, debounce, redact and hand a batch to the capture sink.

        Returns True only when the sink accepted the batch.
        """
        messages = self.prepare_messages(raw_messages)
        if not messages:
            return False

        now = self._clock()
        if self._last_capture is not None:
            elapsed_ms = (now - self._last_capture) * 1000
            if elapsed_ms < self.config.debounce_ms:
                logger.debug("Capture debounced (%.0f ms since last capture)", elapsed_ms)
                return False
        self._last_capture = now

        request = CaptureRequest(
            site=self.page_url,
            provider=self.provider_name,
            messages=messages,
            title=generate_conversation_title(messages, self.hostname),
        )
        try:
            await self.capture_sink.capture(request)
        except Exception as e:
            logger.error("Context capture failed: %s", e)
            await self._log_event("error", {
                "site": self.page_url,
                "provider": self.provider_name,
                "stage": "capture",
                "error": str(e),
            })
            return False

        logger.info("Captured %d messages from %s", len(messages), self.provider_name)
        await self._log_event("capture", {
            "site": self.page_url,
            "provider": self.provider_name,
            "message_count": len(messages),
        })
        return True

    def prepare_messages(self, raw_messages: list[RawMessage]) -> list[Message]:
        """Drop invalid and system messages; redact what remains."""
        messages: list[Message] = []
        for raw in raw_messages or []:
            try:
                message = self.validator.validate_message(raw)
            except MessageValidationError as e:
                logger.warning("Invalid message filtered out: %s %s", e, sanitize_log_data(raw))
                continue
            if message.role is Role.SYSTEM:
                continue
            if self.config.redact_captures:
                message = replace(message, content=self.redaction_engine.redact_text(message.content))
            messages.append(message)
        return messages

    # Injection

    async def handle_input_event(self, element: InputElement, event_type: str) -> bool:
        """Focus/click/keydown handler for a chat input. Never raises."""
        if not self.config.auto_inject or self.profile_source is None:
            return False
        if is_injecting(element):
            logger.debug("Injection already in flight for this input")
            return False
        if not is_new_message_input(element, event_type, self.config.short_text_threshold):
            return False

        mark_injecting(element, True)
        try:
            return await self.inject_context(element)
        except Exception as e:
            logger.error("Context injection failed: %s", e)
            return False
        finally:
            mark_injecting(element, False)

    async def inject_context(self, element: InputElement) -> bool:
        """Fetch the profile and prepend its context text to ``element``.

        Raises ProfileFetchError when the profile source fails and
        ProfileValidationError when the profile is malformed.
        """
        if self.profile_source is None:
            raise ProfileFetchError("No profile source configured")
        try:
            raw_profile = await self.profile_source.get_profile(self.page_url, self.provider_name)
        except Exception as e:
            await self._log_event("error", {
                "site": self.page_url,
                "provider": self.provider_name,
                "stage": "inject",
                "error": str(e),
            })
            if isinstance(e, ProfileFetchError):
                raise
            raise ProfileFetchError(f"Failed to get context profile: {e}") from e

        if not raw_profile:
            logger.debug("No context profile available for %s", self.provider_name)
            return False

        profile = self.validator.validate_context_profile(raw_profile)
        context_text = generate_context_text(profile)
        if not context_text:
            return False

        inject_into_input(element, context_text)
        logger.info("Injected context into %s input", self.provider_name)
        await self._log_event("inject", {
            "site": self.page_url,
            "provider": self.provider_name,
            "method": "prepend",
            "profile_used": profile.profile_name,
            "success": True,
        })
        return True

    async def _log_event(self, kind: str, payload: dict) -> None:
        if self.event_sink is None or not self.config.telemetry:
            return
        try:
            await self.event_sink.log_event(kind, payload)
        except Exception as e:
            logger.warning("Failed to log %s event: %s", kind, e)
