"""Scan added DOM subtrees for chat message elements."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bs4 import Tag

from syncify.extraction.models import MutationRecord, RawMessage, utc_now_iso

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10

GENERIC_MESSAGE_SELECTORS = [
    "[data-message-author-role]",
    '[role="listitem"]',
    ".message",
    ".chat-message",
    ".conversation-turn",
    ".assistant-message",
    ".user-message",
    "[data-message-id]",
    '[data-testid*="message"]',
    '[jsname*="message"]',
    '[data-testid*="tweet"]',
]


@dataclass(frozen=True)
class RoleCues:
    """Selectors that mark an element as user-authored.

    ``self_selector`` is tested on the element itself, ``descendant_selector``
    on its subtree and ``ancestor_selector`` on the element and its ancestors.
    An explicit ``data-message-author-role`` attribute always wins.
    """

    self_selector: str | None = '.user, [data-message-author-role="user"]'
    descendant_selector: str | None = '[data-testid*="user"]'
    ancestor_selector: str | None = ".user-message"


GENERIC_ROLE_CUES = RoleCues()


def collect_elements(records: list[MutationRecord], selectors: list[str]) -> list[Tag]:
    """Matching elements across all added nodes, in document order.

    An element nested inside one that was already collected is skipped so a
    turn container and its inner message node don't both yield a message.
    """
    selector = ", ".join(selectors)
    collected: list[Tag] = []
    for record in records:
        for node in record.added_nodes:
            if not isinstance(node, Tag):
                continue
            candidates = node.css.select(selector)
            if node.css.match(selector):
                candidates.insert(0, node)
            for element in candidates:
                if any(element is seen or _is_inside(element, seen) for seen in collected):
                    continue
                collected.append(element)
    return collected


def element_text(element: Tag) -> str:
    return re.sub(r"\s+", " ", element.get_text(" ")).strip()


def classify_role(element: Tag, cues: RoleCues = GENERIC_ROLE_CUES) -> str:
    """Return "user" or "assistant" from structural cues around ``element``."""
    authored = element.css.closest("[data-message-author-role]")
    if authored is None:
        authored = element.css.select_one("[data-message-author-role]")
    if authored is not None:
        role = str(authored.get("data-message-author-role", "")).strip().lower()
        if role in {"user", "assistant"}:
            return role

    if cues.self_selector and element.css.match(cues.self_selector):
        return "user"
    if cues.descendant_selector and element.css.select_one(cues.descendant_selector) is not None:
        return "user"
    if cues.ancestor_selector and element.css.closest(cues.ancestor_selector) is not None:
        return "user"
    return "assistant"


def scan_messages(
    records: list[MutationRecord],
    selectors: list[str],
    cues: RoleCues = GENERIC_ROLE_CUES,
    min_length: int = MIN_TEXT_LENGTH,
) -> list[RawMessage]:
    """Build raw user/assistant messages from matching elements."""
    messages: list[RawMessage] = []
    for element in collect_elements(records, selectors):
        text = element_text(element)
        if len(text) <= min_length:
            continue
        messages.append({
            "role": classify_role(element, cues),
            "content": text,
            "timestamp": utc_now_iso(),
        })
    return messages


def extract_generic_messages(
    records: list[MutationRecord],
    min_length: int = MIN_TEXT_LENGTH,
) -> list[RawMessage]:
    """Fallback scan over common chat-message selectors for any site layout."""
    messages = scan_messages(records, GENERIC_MESSAGE_SELECTORS, GENERIC_ROLE_CUES, min_length)
    if messages:
        logger.debug("Detected %d generic messages", len(messages))
    return messages


def _is_inside(element: Tag, ancestor: Tag) -> bool:
    return any(parent is ancestor for parent in element.parents)
