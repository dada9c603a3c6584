"""Compose the context text prepended to a new chat message."""

from __future__ import annotations

from syncify.injection.models import ContextProfile
from syncify.redaction.engine import redact_memory_content

KEY_FACT_MIN_IMPORTANCE = 7
MAX_KEY_FACTS = 3


def generate_context_text(profile: ContextProfile) -> str | None:
    """Build the bracketed context block for ``profile``; None if it has nothing to say.

    Facts are expected importance-sorted already; the first three with
    importance >= 7 are used, each redacted when flagged as PII.
    """
    if not profile.system_prompt and not profile.facts:
        return None

    parts: list[str] = []
    if profile.system_prompt:
        parts.append(f"[Context: {profile.system_prompt}]")

    key_facts = [
        redact_memory_content(fact.content, fact.pii)
        for fact in profile.facts
        if (fact.importance or 0) >= KEY_FACT_MIN_IMPORTANCE
    ][:MAX_KEY_FACTS]
    if key_facts:
        parts.append(f"[Key facts: {'; '.join(key_facts)}]")

    return "\n\n".join(parts).strip()
