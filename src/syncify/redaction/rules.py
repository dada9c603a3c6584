"""Default redaction rule set and automatic-detection patterns.

Rules are ordered: each one runs on the output of the previous, so a value
replaced early can't be matched again by a later rule. No placeholder token
is matched by any pattern in this module, which keeps redaction idempotent.
"""

from __future__ import annotations

import re

from syncify.redaction.models import RedactionRule

EMAIL_TOKEN = "[EMAIL_REDACTED]"
PHONE_TOKEN = "[PHONE_REDACTED]"
SSN_TOKEN = "[SSN_REDACTED]"
CARD_TOKEN = "[CARD_REDACTED]"
NAME_TOKEN = "[NAME_REDACTED]"
ADDRESS_TOKEN = "[ADDRESS_REDACTED]"
API_KEY_TOKEN = "[API_KEY_REDACTED]"
PASSWORD_TOKEN = "[PASSWORD_REDACTED]"
TOKEN_TOKEN = "[TOKEN_REDACTED]"
URL_PARAM_TOKEN = "[URL_PARAM_REDACTED]"
CUSTOM_TOKEN = "[CUSTOM_REDACTED]"

PLACEHOLDER_RE = re.compile(r"\[[A-Z_]+_REDACTED\]")

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(?<!\w)(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}(?!\w)")
SSN_RE = re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b")
CARD_RE = re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b")
NAME_RE = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b")
ADDRESS_RE = re.compile(
    r"\b\d+\s+[A-Za-z0-9\s,.-]+?\s+(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|Boulevard|Blvd)\b",
    re.IGNORECASE,
)


def default_rules() -> list[RedactionRule]:
    """A fresh copy of the default rule list (callers may toggle entries)."""
    return [
        RedactionRule("email", EMAIL_RE, EMAIL_TOKEN),
        RedactionRule("phone", PHONE_RE, PHONE_TOKEN),
        RedactionRule("ssn", SSN_RE, SSN_TOKEN),
        RedactionRule("credit_card", CARD_RE, CARD_TOKEN),
        # High false-positive rate; opt-in only.
        RedactionRule("name", NAME_RE, NAME_TOKEN, enabled=False),
        RedactionRule("address", ADDRESS_RE, ADDRESS_TOKEN, enabled=False),
    ]


DEFAULT_REDACTION_RULES = default_rules()

# Automatic detection

SECRET_URL_RE = re.compile(r"https?://[^\s]+", re.IGNORECASE)
SECRET_PARAM_RE = re.compile(r"(?<=[?&;])(key|token|password|secret)=(?!\[)[^\s&#]+", re.IGNORECASE)
PASSWORD_KV_RE = re.compile(r"\b(password)(\s*[:=]\s*)(?!\[)(\S+)", re.IGNORECASE)
TOKEN_KV_RE = re.compile(r"\b(token)(\s*[:=]\s*)(?!\[)(\S+)", re.IGNORECASE)
LONG_TOKEN_RE = re.compile(r"(?<![\w-])[A-Za-z0-9][A-Za-z0-9_-]{19,}(?![\w-])")

API_KEY_SHAPES = [
    re.compile(r"^sk-[A-Za-z0-9_-]{20,}$"),  # OpenAI / Anthropic
    re.compile(r"^AKIA[0-9A-Z]{16}$"),  # AWS access key id
    re.compile(r"^gh[pousr]_[A-Za-z0-9]{36,}$"),  # GitHub
    re.compile(r"^[A-Fa-f0-9]{32}$"),
    re.compile(r"^[A-Fa-f0-9]{40}$"),
    re.compile(r"^[A-Fa-f0-9]{64}$"),
    re.compile(r"^(?=.*\d)(?=.*[A-Za-z])[A-Za-z0-9]{32}$"),
    re.compile(r"^(?=.*\d)(?=.*[A-Za-z])[A-Za-z0-9]{40}$"),
    re.compile(r"^(?=.*\d)(?=.*[A-Za-z])[A-Za-z0-9]{64}$"),
]


def looks_like_api_key(candidate: str) -> bool:
    return any(shape.match(candidate) for shape in API_KEY_SHAPES)
