"""Data models for the extraction module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bs4 import Tag


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Message:
    """One validated conversation turn."""

    role: Role
    content: str
    timestamp: str

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content, "timestamp": self.timestamp}


# Adapters emit plain dicts ({role, content, timestamp}); roles are not yet
# validated and may be host-specific pseudo roles ("memory", "context", ...).
RawMessage = dict[str, Any]
MessageBatch = list[Message]


@dataclass
class ObservedRequest:
    """An outbound HTTP call seen by the host's network observer."""

    url: str
    method: str = "GET"
    body: str | bytes | dict | None = None
    response_body: str | bytes | dict | None = None


@dataclass
class ObservedFrame:
    """A frame sent on a page-created realtime socket."""

    url: str
    data: str | bytes | dict | None = None


@dataclass
class MutationRecord:
    """A batch of element nodes added to the document."""

    added_nodes: list[Tag] = field(default_factory=list)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
