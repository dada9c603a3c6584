"""Per-provider site adapters.

Each adapter knows how one provider's web app talks to its backend: which
outbound requests are chat calls, where the messages sit in the payload, and
which DOM elements hold rendered turns. Exactly one adapter is resolved per
page from the hostname; ``GenericAdapter`` covers everything else.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlparse

from syncify.exceptions import PayloadParseError
from syncify.extraction.dom import MIN_TEXT_LENGTH, GENERIC_ROLE_CUES, RoleCues, collect_elements, element_text, scan_messages
from syncify.extraction.models import MutationRecord, ObservedFrame, ObservedRequest, RawMessage, utc_now_iso

logger = logging.getLogger(__name__)


def parse_json_body(body: str | bytes | dict | list | None) -> Any:
    """Decode a request/response/frame body; None when there is nothing to parse."""
    if body is None:
        return None
    if isinstance(body, (dict, list)):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not isinstance(body, str) or not body.strip():
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise PayloadParseError(f"Body is not valid JSON: {e}") from e


def coerce_content(content: Any) -> str | None:
    """Flatten the content shapes chat APIs use into plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [coerce_content(part) for part in content]
        text = "\n".join(p for p in parts if p)
        return text or None
    if isinstance(content, dict):
        if "parts" in content:
            return coerce_content(content["parts"])
        if isinstance(content.get("text"), str):
            return content["text"]
    return None


def messages_from_list(items: list, default_role: str | None = None) -> list[RawMessage]:
    messages: list[RawMessage] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        role = item.get("role")
        if role is None and isinstance(item.get("author"), dict):
            role = item["author"].get("role")
        content = coerce_content(item.get("content"))
        if content is None:
            content = coerce_content(item.get("text")) or coerce_content(item.get("message"))
        timestamp = item.get("timestamp")
        messages.append({
            "role": role or default_role,
            "content": content,
            "timestamp": timestamp if isinstance(timestamp, str) and timestamp else utc_now_iso(),
        })
    return messages


def messages_from_body(
    body: Any,
    fields: tuple[str, ...] = ("messages",),
    default_role: str | None = None,
    accept_prompt: bool = False,
) -> list[RawMessage] | None:
    if not isinstance(body, dict):
        return None
    for name in fields:
        if isinstance(body.get(name), list):
            return messages_from_list(body[name], default_role) or None
    if accept_prompt and isinstance(body.get("prompt"), str):
        return [{"role": "user", "content": body["prompt"], "timestamp": utc_now_iso()}]
    return None


def host_matches(hostname: str, fragment: str) -> bool:
    host = (hostname or "").strip().lower().rstrip(".")
    frag = fragment.lower()
    return host == frag or host.endswith(f".{frag}")


class SiteAdapter(ABC):
    """Extraction strategy for one provider."""

    provider_name: str = ""
    hostnames: tuple[str, ...] = ()
    chat_paths: tuple[str, ...] = ()
    dom_selectors: tuple[str, ...] = ()
    role_cues: RoleCues = GENERIC_ROLE_CUES

    def __init__(self, min_text_length: int = MIN_TEXT_LENGTH):
        self.min_text_length = min_text_length

    @classmethod
    def matches_host(cls, hostname: str) -> bool:
        return any(host_matches(hostname, fragment) for fragment in cls.hostnames)

    def is_chat_request(self, url: str, method: str | None = None) -> bool:
        path = urlparse(url or "").path
        return any(marker in path for marker in self.chat_paths)

    @abstractmethod
    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        """Messages carried by a chat request (and possibly its response)."""
        ...

    def extract_from_socket(self, frame: ObservedFrame) -> list[RawMessage] | None:
        # Provider socket protocols are undocumented; nothing to read yet.
        return None

    def extract_from_dom(self, records: list[MutationRecord]) -> list[RawMessage] | None:
        if not self.dom_selectors:
            return None
        messages = scan_messages(records, list(self.dom_selectors), self.role_cues, self.min_text_length)
        return messages or None

    def has_dom_matches(self, records: list[MutationRecord]) -> bool:
        """True if any added node holds an element this adapter recognizes."""
        if not self.dom_selectors:
            return False
        return bool(collect_elements(records, list(self.dom_selectors)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_name={self.provider_name!r})"


class OpenAIAdapter(SiteAdapter):
    provider_name = "openai"
    hostnames = ("openai.com", "chatgpt.com")
    chat_paths = ("/chat/completions", "/backend-api/conversation")
    dom_selectors = (
        "[data-message-id]",
        '[data-testid*="conversation-turn"]',
        '[class*="conversation-turn"]',
    )
    role_cues = RoleCues(
        self_selector='[class*="conversation-turn-user"]',
        descendant_selector='[data-message-author-role="user"]',
        ancestor_selector=None,
    )

    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        # Both the public API body and the ChatGPT web body ({author: {role}, content: {parts}}).
        return messages_from_body(parse_json_body(request.body))


class ClaudeAdapter(SiteAdapter):
    provider_name = "claude"
    hostnames = ("claude.ai", "claude.com")
    chat_paths = ("/messages", "/completion")
    dom_selectors = ('[data-testid*="message"]', ".message", ".claude-message")
    role_cues = RoleCues(
        self_selector=".user-message",
        descendant_selector='[data-testid*="user"]',
        ancestor_selector=".user-message",
    )

    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        # claude.ai's own completion endpoint posts a single prompt.
        return messages_from_body(parse_json_body(request.body), accept_prompt=True)


class GoogleAdapter(SiteAdapter):
    provider_name = "google"
    hostnames = ("gemini.google.com", "bard.google.com", "google.com", "gemini.com")
    chat_paths = ("/generate", "/chat", "/gemini")

    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        return messages_from_body(parse_json_body(request.body))


class GrokAdapter(SiteAdapter):
    provider_name = "grok"
    hostnames = ("grok.com", "x.com")
    chat_paths = ("/api/grok", "/chat", "/generate")
    dom_selectors = ('[data-testid*="grok"]', '[data-testid*="chat"]')
    role_cues = RoleCues(
        self_selector=".user-message",
        descendant_selector=None,
        ancestor_selector='[data-testid*="user"]',
    )

    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        return messages_from_body(parse_json_body(request.body), accept_prompt=True)


class DeepSeekAdapter(SiteAdapter):
    provider_name = "deepseek"
    hostnames = ("deepseek.com",)
    chat_paths = ("/api/v1/chat", "/chat/completions", "/generate")
    dom_selectors = (".message", '[class*="message"]', '[class*="chat"]')
    role_cues = RoleCues(
        self_selector=".user",
        descendant_selector=None,
        ancestor_selector=".user-message",
    )

    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        return messages_from_body(parse_json_body(request.body), accept_prompt=True)


class SyncifyAdapter(SiteAdapter):
    """The host application's own dashboard and API.

    DOM extraction emits pseudo roles ("memory", "context", "profile") that
    message validation later drops, so nothing here reaches storage unless it
    is a real conversation turn.
    """

    provider_name = "syncify"
    hostnames = ("localhost", "127.0.0.1", "vercel.app", "netlify.app", "syncify.io", "syncify.ai")
    chat_paths = (
        "/api/conversations",
        "/api/memories",
        "/api/context",
        "/api/profiles",
        "/api/export",
        "/api/telemetry",
    )
    dom_selectors = ("[data-syncify]", ".syncify-message", ".memory-card", ".context-card", ".profile-card")

    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        path = urlparse(request.url or "").path
        body = parse_json_body(request.body)

        if isinstance(body, dict):
            if "/api/conversations" in path:
                messages = messages_from_body(body, default_role="user")
                if messages:
                    return messages
            if ("/api/context" in path or "/api/profiles" in path) and (
                body.get("system_prompt") or body.get("facts")
            ):
                return [{
                    "role": "system",
                    "content": f"System: {body.get('system_prompt') or ''} "
                    f"Facts: {json.dumps(body.get('facts') or [])}",
                    "timestamp": utc_now_iso(),
                }]

        try:
            response = parse_json_body(request.response_body)
        except PayloadParseError:
            logger.debug("Response from %s is not JSON", path)
            return None
        return messages_from_body(response, default_role="user")

    def extract_from_dom(self, records: list[MutationRecord]) -> list[RawMessage] | None:
        messages: list[RawMessage] = []
        for element in collect_elements(records, list(self.dom_selectors)):
            text = element_text(element)
            if len(text) <= self.min_text_length:
                continue
            messages.append({
                "role": self._card_role(element),
                "content": text,
                "timestamp": utc_now_iso(),
            })
        return messages or None

    @staticmethod
    def _card_role(element) -> str:
        for kind in ("memory", "context", "profile"):
            selector = f".{kind}-card"
            if element.css.match(selector) or element.css.select_one(selector) is not None:
                return kind
        return "system"


class GenericAdapter(SiteAdapter):
    """Network-only capture for sites without a dedicated adapter."""

    provider_name = "generic"
    chat_paths = ("/chat", "/completions", "/messages", "/generate", "/ask", "/query")
    message_fields = ("messages", "conversation", "chat", "prompts")

    def extract_from_request(self, request: ObservedRequest) -> list[RawMessage] | None:
        return messages_from_body(
            parse_json_body(request.body),
            fields=self.message_fields,
            default_role="user",
            accept_prompt=True,
        )

    def extract_from_dom(self, records: list[MutationRecord]) -> list[RawMessage] | None:
        return None


ADAPTER_PRIORITY: tuple[type[SiteAdapter], ...] = (
    OpenAIAdapter,
    ClaudeAdapter,
    GoogleAdapter,
    GrokAdapter,
    DeepSeekAdapter,
    SyncifyAdapter,
)

AI_SITE_HOSTS = (
    "chat.openai.com",
    "chatgpt.com",
    "claude.ai",
    "claude.com",
    "gemini.google.com",
    "gemini.com",
    "bard.google.com",
    "grok.com",
    "x.com",
    "deepseek.com",
    "poe.com",
    "perplexity.ai",
    "you.com",
    "character.ai",
    "huggingface.co",
    "replicate.com",
) + SyncifyAdapter.hostnames


def resolve_adapter(hostname: str, min_text_length: int = MIN_TEXT_LENGTH) -> SiteAdapter:
    """Pick the adapter for a page, first match in priority order."""
    for adapter_type in ADAPTER_PRIORITY:
        if adapter_type.matches_host(hostname):
            return adapter_type(min_text_length)
    return GenericAdapter(min_text_length)


def is_ai_site(hostname: str) -> bool:
    return any(host_matches(hostname, fragment) for fragment in AI_SITE_HOSTS)
