"""Tests for the injection trigger heuristic and input writing."""

from bs4 import BeautifulSoup

from syncify.injection.inputs import (
    inject_into_input,
    is_injecting,
    is_new_message_input,
    mark_injecting,
)
from syncify.injection.models import InputElement


def _textarea(**kwargs):
    defaults = {"tag_name": "textarea", "width": 400, "height": 40}
    defaults.update(kwargs)
    return InputElement(**defaults)


def test_empty_visible_textarea_on_focus():
    assert is_new_message_input(_textarea(), "focus")


def test_focused_textarea_on_keydown():
    assert is_new_message_input(_textarea(focused=True), "keydown")


def test_unfocused_keydown_is_ignored():
    assert not is_new_message_input(_textarea(), "keydown")


def test_hidden_input_is_ignored():
    assert not is_new_message_input(_textarea(width=0), "click")


def test_short_text_allowed_long_text_rejected():
    assert is_new_message_input(_textarea(value="quick q"), "click")
    assert not is_new_message_input(_textarea(value="x" * 60), "click")


def test_plain_text_input_is_not_primary():
    element = InputElement(tag_name="input", input_type="text", width=100, height=20)
    assert not is_new_message_input(element, "focus")


def test_textbox_role_and_contenteditable_are_primary():
    assert is_new_message_input(InputElement(tag_name="div", role="textbox", width=1, height=1), "focus")
    assert is_new_message_input(InputElement(tag_name="div", content_editable=True, width=1, height=1), "focus")


def test_inject_into_value_input():
    element = _textarea(value="hi")
    inject_into_input(element, "[Context: x]")
    assert element.value == "[Context: x]\nhi"
    assert element.dispatched_events == ["input", "change"]


def test_inject_into_contenteditable():
    element = InputElement(tag_name="div", content_editable=True, value="", width=1, height=1)
    inject_into_input(element, "[Key facts: a]")
    assert element.value.startswith("[Key facts: a]")
    assert element.dispatched_events == ["input"]


def test_injecting_marker():
    element = _textarea()
    assert not is_injecting(element)
    mark_injecting(element, True)
    assert is_injecting(element)
    mark_injecting(element, False)
    assert not is_injecting(element)


def test_from_tag():
    soup = BeautifulSoup(
        '<div contenteditable="true" role="textbox" data-id="root">draft</div>',
        "html.parser",
    )
    element = InputElement.from_tag(soup.div, width=300, height=30, focused=True)
    assert element.content_editable is True
    assert element.value == "draft"
    assert element.role == "textbox"
    assert element.dataset == {"id": "root"}
    assert is_new_message_input(element, "keydown")
