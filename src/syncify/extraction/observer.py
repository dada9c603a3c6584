"""Page-signal observers: the host pushes requests, frames and DOM mutations.

The engine never patches fetch/WebSocket itself; whatever embeds it (a
browser bridge, a proxy addon, a test) registers listeners here and emits
what it sees.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from bs4 import BeautifulSoup, Tag

from syncify.extraction.models import MutationRecord, ObservedFrame, ObservedRequest

logger = logging.getLogger(__name__)

RequestListener = Callable[[ObservedRequest], Awaitable[None]]
FrameListener = Callable[[ObservedFrame], Awaitable[None]]
MutationListener = Callable[[list[MutationRecord]], Awaitable[None]]


class BaseNetworkObserver(ABC):
    """Reports outbound HTTP requests and socket frames."""

    @abstractmethod
    def add_request_listener(self, listener: RequestListener) -> None:
        ...

    @abstractmethod
    def add_frame_listener(self, listener: FrameListener) -> None:
        ...


class BaseDomObserver(ABC):
    """Reports batches of nodes added under the document body."""

    @abstractmethod
    def add_mutation_listener(self, listener: MutationListener) -> None:
        ...


class PageObserver(BaseNetworkObserver, BaseDomObserver):
    """In-process fan-out of page signals to registered listeners."""

    def __init__(self) -> None:
        self._request_listeners: list[RequestListener] = []
        self._frame_listeners: list[FrameListener] = []
        self._mutation_listeners: list[MutationListener] = []

    def add_request_listener(self, listener: RequestListener) -> None:
        self._request_listeners.append(listener)

    def add_frame_listener(self, listener: FrameListener) -> None:
        self._frame_listeners.append(listener)

    def add_mutation_listener(self, listener: MutationListener) -> None:
        self._mutation_listeners.append(listener)

    async def emit_request(self, request: ObservedRequest) -> None:
        await self._dispatch(self._request_listeners, request)

    async def emit_frame(self, frame: ObservedFrame) -> None:
        await self._dispatch(self._frame_listeners, frame)

    async def emit_mutations(self, records: list[MutationRecord]) -> None:
        await self._dispatch(self._mutation_listeners, records)

    async def emit_html(self, html: str) -> None:
        """Emit an HTML fragment as one mutation of its top-level elements."""
        soup = BeautifulSoup(html, "html.parser")
        nodes = [child for child in soup.contents if isinstance(child, Tag)]
        if nodes:
            await self.emit_mutations([MutationRecord(added_nodes=nodes)])

    @staticmethod
    async def _dispatch(listeners: list, event) -> None:
        for listener in list(listeners):
            try:
                await listener(event)
            except Exception:
                logger.exception("Page listener %r failed", listener)
