"""Tests for the extraction engine: capture pipeline, debounce, injection."""

import asyncio
import json

import pytest
from bs4 import BeautifulSoup

from syncify.config import SyncifyConfig
from syncify.exceptions import CaptureError, ProfileFetchError
from syncify.extraction.adapters import ClaudeAdapter, GenericAdapter
from syncify.extraction.engine import ExtractionEngine, generate_conversation_title
from syncify.extraction.models import Message, MutationRecord, ObservedFrame, ObservedRequest, Role
from syncify.extraction.observer import PageObserver
from syncify.injection.models import InputElement
from syncify.storage.base import BaseCaptureSink, BaseEventSink, BaseProfileSource


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms / 1000


class RecordingSink(BaseCaptureSink):
    def __init__(self, fail=False):
        self.requests = []
        self.fail = fail

    async def capture(self, request):
        if self.fail:
            raise CaptureError("storage down")
        self.requests.append(request)
        return {"id": "conv-1"}


class RecordingEvents(BaseEventSink):
    def __init__(self, fail=False):
        self.events = []
        self.fail = fail

    async def log_event(self, kind, payload):
        if self.fail:
            raise RuntimeError("telemetry down")
        self.events.append((kind, payload))


class StaticProfiles(BaseProfileSource):
    def __init__(self, profile=None, error=None, delay=0.0):
        self.profile = profile
        self.error = error
        self.delay = delay
        self.calls = 0

    async def get_profile(self, site, provider):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.profile


PROFILE = {
    "system_prompt": "",
    "facts": [
        {"content": "likes tea", "importance": 9},
        {"content": "uses Vim", "importance": 5},
    ],
}


def _engine(url="https://chatgpt.com/c/1", **kwargs):
    kwargs.setdefault("capture_sink", RecordingSink())
    kwargs.setdefault("clock", FakeClock())
    return ExtractionEngine(url, **kwargs)


def _chat_request(messages):
    return ObservedRequest(
        url="https://chatgpt.com/backend-api/conversation",
        method="POST",
        body=json.dumps({"messages": messages}),
    )


@pytest.mark.asyncio
async def test_capture_from_network_request():
    events = RecordingEvents()
    engine = _engine(event_sink=events)
    captured = await engine.handle_request(_chat_request([
        {"role": "system", "content": "hidden instructions"},
        {"role": "user", "content": "What's the capital of France?"},
        {"role": "assistant", "content": "Paris."},
    ]))
    assert captured is True
    request = engine.capture_sink.requests[0]
    assert request.provider == "openai"
    assert request.site == "https://chatgpt.com/c/1"
    assert [m.role for m in request.messages] == [Role.USER, Role.ASSISTANT]
    assert request.title == "What's the capital of France?"
    assert events.events[0][0] == "capture"


@pytest.mark.asyncio
async def test_invalid_messages_dropped_not_batch():
    engine = _engine()
    await engine.capture([
        {"role": "user", "content": ""},
        {"role": "memory", "content": "pseudo"},
        {"content": "no role"},
        {"role": "assistant", "content": "kept"},
    ])
    messages = engine.capture_sink.requests[0].messages
    assert [m.content for m in messages] == ["kept"]


@pytest.mark.asyncio
async def test_all_system_batch_fires_nothing():
    engine = _engine()
    assert await engine.capture([{"role": "system", "content": "only system"}]) is False
    assert engine.capture_sink.requests == []


@pytest.mark.asyncio
async def test_debounce_window():
    clock = FakeClock()
    engine = _engine(clock=clock)
    assert await engine.capture([{"role": "user", "content": "first"}]) is True
    clock.advance(100)
    assert await engine.capture([{"role": "user", "content": "second"}]) is False
    assert len(engine.capture_sink.requests) == 1
    clock.advance(500)
    assert await engine.capture([{"role": "user", "content": "third"}]) is True
    assert len(engine.capture_sink.requests) == 2


@pytest.mark.asyncio
async def test_captured_content_is_redacted():
    engine = _engine()
    await engine.capture([{"role": "user", "content": "mail me at a@b.com please"}])
    request = engine.capture_sink.requests[0]
    assert request.messages[0].content == "mail me at [EMAIL_REDACTED] please"
    assert "a@b.com" not in request.title


@pytest.mark.asyncio
async def test_redaction_can_be_turned_off():
    engine = _engine(config=SyncifyConfig(redact_captures=False))
    await engine.capture([{"role": "user", "content": "mail me at a@b.com"}])
    assert engine.capture_sink.requests[0].messages[0].content == "mail me at a@b.com"


@pytest.mark.asyncio
async def test_sink_failure_returns_false_and_logs_error_event():
    events = RecordingEvents()
    engine = _engine(capture_sink=RecordingSink(fail=True), event_sink=events)
    assert await engine.capture([{"role": "user", "content": "hello"}]) is False
    assert events.events[0][0] == "error"
    assert "storage down" in events.events[0][1]["error"]


@pytest.mark.asyncio
async def test_event_sink_failure_is_not_escalated():
    engine = _engine(event_sink=RecordingEvents(fail=True))
    assert await engine.capture([{"role": "user", "content": "hello"}]) is True


@pytest.mark.asyncio
async def test_malformed_request_is_isolated():
    engine = _engine()
    bad = ObservedRequest(url="https://chatgpt.com/backend-api/conversation", body="{oops")
    assert await engine.handle_request(bad) is False
    assert await engine.handle_request(_chat_request([{"role": "user", "content": "still works"}])) is True


@pytest.mark.asyncio
async def test_non_chat_request_ignored():
    engine = _engine()
    request = ObservedRequest(url="https://chatgpt.com/backend-api/me", body='{"messages": []}')
    assert await engine.handle_request(request) is False


@pytest.mark.asyncio
async def test_socket_frames_yield_nothing():
    engine = _engine()
    assert await engine.handle_socket_frame(ObservedFrame(url="wss://chatgpt.com", data="{}")) is False


@pytest.mark.asyncio
async def test_generic_fallback_through_observer():
    engine = _engine(url="https://claude.ai/chat/abc")
    observer = PageObserver()
    assert engine.attach(observer) is True
    await observer.emit_html(
        '<section><div data-message-author-role="user">Fallback captured message</div></section>'
    )
    messages = engine.capture_sink.requests[0].messages
    assert messages[0].role is Role.USER
    assert messages[0].content == "Fallback captured message"


@pytest.mark.asyncio
async def test_no_generic_scan_when_adapter_elements_found():
    engine = _engine(url="https://claude.ai/chat/abc")
    observer = PageObserver()
    engine.attach(observer)
    await observer.emit_html(
        '<section><div class="message">typing</div>'
        '<div data-message-author-role="user">Would only be seen by the generic scan</div></section>'
    )
    assert engine.capture_sink.requests == []


def test_has_dom_matches():
    soup = BeautifulSoup('<div><p class="message">hi</p></div>', "html.parser")
    records = [MutationRecord(added_nodes=[soup.div])]
    assert ClaudeAdapter().has_dom_matches(records) is True
    assert GenericAdapter().has_dom_matches(records) is False


@pytest.mark.asyncio
async def test_attach_skips_non_ai_sites():
    engine = _engine(url="https://news.example.com/")
    assert engine.attach(PageObserver()) is False
    assert engine.provider_name == "generic"


@pytest.mark.asyncio
async def test_auto_capture_disabled():
    engine = _engine(config=SyncifyConfig(auto_capture=False))
    assert await engine.handle_request(_chat_request([{"role": "user", "content": "x"}])) is False


@pytest.mark.asyncio
async def test_injection_on_focus():
    events = RecordingEvents()
    engine = _engine(profile_source=StaticProfiles(PROFILE), event_sink=events)
    element = InputElement(tag_name="textarea", width=300, height=40)
    assert await engine.handle_input_event(element, "focus") is True
    assert element.value.startswith("[Key facts: likes tea]")
    assert "uses Vim" not in element.value
    assert element.dispatched_events == ["input", "change"]
    assert events.events[-1][0] == "inject"
    assert "syncify-injecting" not in element.dataset


@pytest.mark.asyncio
async def test_injection_not_triggered_for_long_text():
    profiles = StaticProfiles(PROFILE)
    engine = _engine(profile_source=profiles)
    element = InputElement(tag_name="textarea", value="y" * 80, width=300, height=40, focused=True)
    assert await engine.handle_input_event(element, "keydown") is False
    assert profiles.calls == 0


@pytest.mark.asyncio
async def test_concurrent_injection_on_same_input_is_dropped():
    profiles = StaticProfiles(PROFILE, delay=0.01)
    engine = _engine(profile_source=profiles)
    element = InputElement(tag_name="textarea", width=300, height=40)
    results = await asyncio.gather(
        engine.handle_input_event(element, "focus"),
        engine.handle_input_event(element, "click"),
    )
    assert sorted(results) == [False, True]
    assert profiles.calls == 1


@pytest.mark.asyncio
async def test_profile_failure_surfaces_from_inject_context():
    events = RecordingEvents()
    engine = _engine(profile_source=StaticProfiles(error=RuntimeError("offline")), event_sink=events)
    element = InputElement(tag_name="textarea", width=300, height=40)
    with pytest.raises(ProfileFetchError):
        await engine.inject_context(element)
    assert events.events[0][0] == "error"
    assert await engine.handle_input_event(element, "focus") is False
    assert element.value == ""


@pytest.mark.asyncio
async def test_no_profile_means_no_injection():
    engine = _engine(profile_source=StaticProfiles(None))
    element = InputElement(tag_name="textarea", width=300, height=40)
    assert await engine.handle_input_event(element, "focus") is False
    assert element.dispatched_events == []


def test_conversation_title():
    long_text = "a" * 60
    msgs = [Message(Role.ASSISTANT, "hi", "t"), Message(Role.USER, long_text, "t")]
    assert generate_conversation_title(msgs, "chatgpt.com") == "a" * 47 + "..."
    assert generate_conversation_title([Message(Role.ASSISTANT, "hi", "t")], "claude.ai") == "Conversation on claude.ai"
    assert generate_conversation_title([], "x") == "Empty conversation"
