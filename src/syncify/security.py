"""Validation and sanitization for content crossing the page boundary."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from syncify.config import DEFAULT_ALLOWED_DOMAINS
from syncify.exceptions import MessageValidationError, ProfileValidationError
from syncify.extraction.models import Message, Role, utc_now_iso
from syncify.injection.models import ContextProfile

logger = logging.getLogger(__name__)

_DANGEROUS_TAGS = ["script", "iframe", "object", "embed"]
_URL_ATTRIBUTES = {"href", "src", "action", "formaction"}

_SENSITIVE_LOG_KEYS = ("password", "token", "key", "secret", "auth", "session")

VALID_ROLES = {role.value for role in Role}


class SecurityValidator:
    """Validate and sanitize messages and context profiles.

    Args:
        max_content_length: Longer content is truncated (with a warning).
        allowed_domains: Domains accepted by ``validate_origin``.
    """

    def __init__(
        self,
        max_content_length: int = 50000,
        allowed_domains: list[str] | None = None,
    ):
        self.max_content_length = max_content_length
        self.allowed_domains = [
            d.lower() for d in (allowed_domains if allowed_domains is not None else DEFAULT_ALLOWED_DOMAINS)
        ]

    def sanitize_content(self, content: Any) -> str:
        if not content or not isinstance(content, str):
            return ""
        if len(content) > self.max_content_length:
            logger.warning("Content too long (%d chars), truncating", len(content))
            content = content[: self.max_content_length]
        if "<" in content:
            content = _strip_active_markup(content)
        return content.strip()

    def validate_message(self, raw: Any) -> Message:
        """Normalize one raw message; raises MessageValidationError if unusable."""
        if not isinstance(raw, dict):
            raise MessageValidationError("Invalid message structure")

        role = raw.get("role")
        if not isinstance(role, str) or role not in VALID_ROLES:
            raise MessageValidationError(f"Invalid message role: {role!r}")

        content = raw.get("content")
        if not isinstance(content, str) or not content.strip():
            raise MessageValidationError("Invalid message content")

        sanitized = self.sanitize_content(content)
        if not sanitized:
            raise MessageValidationError("Message content is empty after sanitization")

        timestamp = raw.get("timestamp")
        return Message(
            role=Role(role),
            content=sanitized,
            timestamp=timestamp if isinstance(timestamp, str) and timestamp else utc_now_iso(),
        )

    def validate_context_profile(self, raw: Any) -> ContextProfile:
        if not isinstance(raw, dict):
            raise ProfileValidationError("Invalid context profile structure")

        system_prompt = raw.get("system_prompt")
        if system_prompt and not isinstance(system_prompt, str):
            raise ProfileValidationError("System prompt must be a string")

        facts = raw.get("facts") or []
        if not isinstance(facts, list):
            raise ProfileValidationError("Facts must be a list")
        for index, fact in enumerate(facts):
            if not isinstance(fact, dict) or not isinstance(fact.get("content"), str) or not fact["content"]:
                raise ProfileValidationError(f"Invalid fact at index {index}")
            importance = fact.get("importance")
            if importance is not None and (
                isinstance(importance, bool)
                or not isinstance(importance, (int, float))
                or not 1 <= importance <= 10
            ):
                raise ProfileValidationError(f"Invalid importance value at index {index}")

        profile = ContextProfile.from_dict(raw)
        profile.system_prompt = self.sanitize_content(profile.system_prompt)
        for fact in profile.facts:
            fact.content = self.sanitize_content(fact.content)
        return profile

    def validate_origin(self, url: str) -> bool:
        try:
            domain = (urlparse(url).hostname or "").lower()
        except ValueError:
            logger.warning("Origin validation failed for %r", url)
            return False
        if not domain:
            return False
        allowed = any(domain == d or domain.endswith(f".{d}") for d in self.allowed_domains)
        if not allowed:
            logger.debug("Domain %s is not allowed", domain)
        return allowed


def _strip_active_markup(content: str) -> str:
    """Remove script-like elements, inline handlers and ``javascript:`` URLs.

    Content with nothing to remove is returned as is, so plain text that
    merely contains ``<`` is never re-serialized.
    """
    soup = BeautifulSoup(content, "html.parser")
    changed = False
    for tag in soup(_DANGEROUS_TAGS):
        tag.decompose()
        changed = True
    for tag in soup.find_all(True):
        for name in list(tag.attrs):
            attr = name.lower()
            if attr.startswith("on") or (attr in _URL_ATTRIBUTES and _is_javascript_url(tag[name])):
                del tag[name]
                changed = True
    if not changed:
        return content
    return soup.decode(formatter=None)


def _is_javascript_url(value: Any) -> bool:
    # Browsers ignore whitespace and control characters inside the scheme.
    return re.sub(r"[\s\x00-\x1f]", "", str(value)).lower().startswith("javascript:")


def sanitize_log_data(data: Any) -> Any:
    """Copy of ``data`` with credential-like keys replaced by ``[REDACTED]``."""
    if isinstance(data, dict):
        return {
            k: "[REDACTED]"
            if any(s in str(k).lower() for s in _SENSITIVE_LOG_KEYS)
            else sanitize_log_data(v)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [sanitize_log_data(v) for v in data]
    return data
