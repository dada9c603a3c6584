"""Capture, profile and event collaborators.

``SyncifyApiClient`` needs httpx and is imported lazily:
    from syncify.storage.api import SyncifyApiClient
"""

from syncify.storage.base import BaseCaptureSink, BaseEventSink, BaseProfileSource, CaptureRequest


def __getattr__(name):
    if name == "SyncifyApiClient":
        from syncify.storage.api import SyncifyApiClient
        return SyncifyApiClient
    raise AttributeError(f"module 'syncify.storage' has no attribute {name!r}")


__all__ = [
    "BaseCaptureSink",
    "BaseEventSink",
    "BaseProfileSource",
    "CaptureRequest",
    "SyncifyApiClient",
]
