"""Chat message extraction from observed page activity.

The engine pulls in security, injection and storage; import it explicitly:
    from syncify.extraction.engine import ExtractionEngine
"""

from syncify.extraction.adapters import SiteAdapter, is_ai_site, resolve_adapter
from syncify.extraction.dom import extract_generic_messages
from syncify.extraction.models import (
    Message,
    MessageBatch,
    MutationRecord,
    ObservedFrame,
    ObservedRequest,
    Role,
)
from syncify.extraction.observer import PageObserver


def __getattr__(name):
    """Lazy import for the engine, which depends on this package's models."""
    if name == "ExtractionEngine":
        from syncify.extraction.engine import ExtractionEngine
        return ExtractionEngine
    raise AttributeError(f"module 'syncify.extraction' has no attribute {name!r}")


__all__ = [
    "ExtractionEngine",
    "SiteAdapter",
    "is_ai_site",
    "resolve_adapter",
    "extract_generic_messages",
    "Message",
    "MessageBatch",
    "MutationRecord",
    "ObservedFrame",
    "ObservedRequest",
    "Role",
    "PageObserver",
]
