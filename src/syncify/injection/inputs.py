"""Decide when an input qualifies for injection, and write into it."""

from __future__ import annotations

from syncify.injection.models import InputElement

SHORT_TEXT_THRESHOLD = 50
ACTIVATION_EVENTS = {"focus", "click"}
INJECTING_MARKER = "syncify-injecting"


def is_primary_input(element: InputElement) -> bool:
    return (
        element.tag_name.lower() == "textarea"
        or (element.role or "").lower() == "textbox"
        or element.content_editable
    )


def is_new_message_input(
    element: InputElement,
    event_type: str,
    short_text_threshold: int = SHORT_TEXT_THRESHOLD,
) -> bool:
    """True when the user looks about to start a new message in ``element``.

    Empty or short text is accepted so injection also works at the start of a
    new turn in an ongoing conversation. Any short-text primary input
    qualifies, including unrelated ones.
    """
    if not is_primary_input(element):
        return False
    if not element.is_visible:
        return False
    if not (element.focused or event_type in ACTIVATION_EVENTS):
        return False
    return len((element.value or "").strip()) < short_text_threshold


def inject_into_input(element: InputElement, context_text: str) -> None:
    """Prepend ``context_text`` and notify the page of the change."""
    current = element.value or ""
    element.value = f"{context_text}\n{current}"
    element.dispatch_event("input")
    if not element.content_editable:
        element.dispatch_event("change")


def is_injecting(element: InputElement) -> bool:
    return element.dataset.get(INJECTING_MARKER) == "true"


def mark_injecting(element: InputElement, active: bool) -> None:
    if active:
        element.dataset[INJECTING_MARKER] = "true"
    else:
        element.dataset.pop(INJECTING_MARKER, None)
