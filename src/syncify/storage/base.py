"""Abstract collaborator interfaces the extraction engine talks to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from syncify.extraction.models import Message


@dataclass
class CaptureRequest:
    """One capture event handed to storage."""

    site: str
    provider: str
    messages: list[Message] = field(default_factory=list)
    title: str = ""

    def to_dict(self) -> dict:
        return {
            "site": self.site,
            "provider": self.provider,
            "messages": [m.to_dict() for m in self.messages],
            "title": self.title,
        }


class BaseCaptureSink(ABC):
    """Stores captured conversation batches."""

    @abstractmethod
    async def capture(self, request: CaptureRequest) -> dict:
        """Persist a batch; raises CaptureError on failure."""
        ...


class BaseProfileSource(ABC):
    """Supplies the context profile used for injection."""

    @abstractmethod
    async def get_profile(self, site: str, provider: str) -> dict | None:
        """Raw profile dict for the site/provider, or None when none applies."""
        ...


class BaseEventSink(ABC):
    """Receives capture/inject/error telemetry."""

    @abstractmethod
    async def log_event(self, kind: str, payload: dict) -> None:
        ...
