"""Data models for the redaction module."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from syncify.exceptions import RedactionPatternError


@dataclass
class RedactionRule:
    """A single pattern → placeholder substitution."""

    category: str  # "email" | "phone" | "ssn" | "credit_card" | "name" | "address" | "custom"
    pattern: re.Pattern
    replacement: str
    enabled: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.pattern, str):
            try:
                self.pattern = re.compile(self.pattern)
            except re.error as e:
                raise RedactionPatternError(f"Invalid pattern for {self.category} rule: {e}") from e

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


@dataclass
class RedactionConfig:
    """Rule list plus the toggles that drive a RedactionEngine.

    ``rules=None`` selects the default rule set; an empty list means no rules.
    """

    rules: list[RedactionRule] | None = None
    enable_automatic_detection: bool = True
    custom_patterns: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RedactionSummary:
    """What categories of sensitive data a text contains."""

    has_email: bool = False
    has_phone: bool = False
    has_ssn: bool = False
    has_credit_card: bool = False
    has_api_key: bool = False
    has_password: bool = False
    total_redactions: int = 0

    @property
    def sensitivity_level(self) -> str:
        if self.total_redactions == 0:
            return "none"
        if self.total_redactions <= 2:
            return "low"
        if self.total_redactions <= 5:
            return "medium"
        return "high"

    def to_dict(self) -> dict:
        return {
            "hasEmail": self.has_email,
            "hasPhone": self.has_phone,
            "hasSSN": self.has_ssn,
            "hasCreditCard": self.has_credit_card,
            "hasApiKey": self.has_api_key,
            "hasPassword": self.has_password,
            "totalRedactions": self.total_redactions,
        }
