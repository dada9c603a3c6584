"""Data models for context injection."""

from __future__ import annotations

from dataclasses import dataclass, field

from bs4 import Tag


@dataclass
class Fact:
    content: str
    importance: int = 5
    pii: bool = False


@dataclass
class ContextProfile:
    """A named bundle of system prompt and facts fetched for injection."""

    system_prompt: str = ""
    facts: list[Fact] = field(default_factory=list)
    profile_name: str | None = None
    estimated_tokens: int | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> ContextProfile:
        facts = [
            Fact(
                content=f.get("content", ""),
                importance=f.get("importance") or 5,
                pii=bool(f.get("pii", False)),
            )
            for f in raw.get("facts") or []
        ]
        return cls(
            system_prompt=raw.get("system_prompt") or "",
            facts=facts,
            profile_name=raw.get("profile_name") or raw.get("name"),
            estimated_tokens=raw.get("estimated_tokens"),
        )


@dataclass
class InputElement:
    """Host-side view of a chat input the user may be about to type into.

    Hosts that drive a real page subclass this and override
    ``dispatch_event`` to forward synthetic events to the page.
    """

    tag_name: str
    value: str = ""
    role: str | None = None
    content_editable: bool = False
    input_type: str | None = None
    width: float = 0.0
    height: float = 0.0
    focused: bool = False
    dataset: dict[str, str] = field(default_factory=dict)
    dispatched_events: list[str] = field(default_factory=list)

    @classmethod
    def from_tag(
        cls,
        tag: Tag,
        width: float = 0.0,
        height: float = 0.0,
        focused: bool = False,
    ) -> InputElement:
        editable = tag.has_attr("contenteditable") and str(tag["contenteditable"]).lower() in {
            "",
            "true",
            "plaintext-only",
        }
        if editable or tag.name == "textarea":
            value = tag.get_text()
        else:
            value = str(tag.get("value", ""))
        return cls(
            tag_name=tag.name,
            value=value,
            role=tag.get("role"),
            content_editable=editable,
            input_type=tag.get("type"),
            width=width,
            height=height,
            focused=focused,
            dataset={
                k[len("data-"):]: str(v) for k, v in tag.attrs.items() if k.startswith("data-")
            },
        )

    @property
    def is_visible(self) -> bool:
        return self.width > 0 and self.height > 0

    def dispatch_event(self, event_type: str) -> None:
        self.dispatched_events.append(event_type)
