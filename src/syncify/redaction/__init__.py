"""PII detection and redaction."""

from syncify.redaction.engine import (
    RedactionEngine,
    create_redaction_engine,
    redact_memory_content,
    should_redact_for_site,
)
from syncify.redaction.models import RedactionConfig, RedactionRule, RedactionSummary
from syncify.redaction.rules import DEFAULT_REDACTION_RULES, default_rules

__all__ = [
    "RedactionEngine",
    "create_redaction_engine",
    "redact_memory_content",
    "should_redact_for_site",
    "RedactionConfig",
    "RedactionRule",
    "RedactionSummary",
    "DEFAULT_REDACTION_RULES",
    "default_rules",
]
