"""Rule-based PII redaction.

This is a pure text-to-text layer: no I/O, no shared state beyond the rule
list owned by each engine instance.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from syncify.redaction import rules as r
from syncify.redaction.models import RedactionConfig, RedactionRule, RedactionSummary

logger = logging.getLogger(__name__)


class RedactionEngine:
    """Apply redaction rules, automatic detection and custom patterns to text.

    Args:
        config: Rule list and toggles. Defaults to the built-in rule set with
            automatic detection enabled and no custom patterns.
    """

    def __init__(self, config: RedactionConfig | None = None):
        config = config or RedactionConfig()
        self._config = RedactionConfig(
            rules=list(config.rules) if config.rules is not None else r.default_rules(),
            enable_automatic_detection=config.enable_automatic_detection,
            custom_patterns=list(config.custom_patterns),
        )
        self._compiled_custom = self._compile_custom(self._config.custom_patterns)

    @property
    def config(self) -> RedactionConfig:
        """A copy of the current configuration."""
        return RedactionConfig(
            rules=list(self._config.rules),
            enable_automatic_detection=self._config.enable_automatic_detection,
            custom_patterns=list(self._config.custom_patterns),
        )

    def redact_text(self, text: str, rules: list[RedactionRule] | None = None) -> str:
        """Return a redacted copy of ``text``.

        Enabled rules run in list order, then automatic detection, then
        custom patterns; each step sees the output of the previous one.
        """
        if not isinstance(text, str) or not text:
            return ""

        redacted = text
        for rule in rules if rules is not None else self._config.rules:
            if rule.enabled:
                redacted = rule.apply(redacted)

        if self._config.enable_automatic_detection:
            redacted = self._apply_automatic_detection(redacted)

        for pattern in self._compiled_custom:
            redacted = pattern.sub(r.CUSTOM_TOKEN, redacted)

        return redacted

    def contains_sensitive_info(self, text: str) -> bool:
        if not isinstance(text, str) or not text:
            return False
        return self.redact_text(text) != text

    def get_redaction_summary(self, text: str) -> RedactionSummary:
        """Summarize which categories ``text`` contains. Recomputed every call."""
        redacted = self.redact_text(text)
        return RedactionSummary(
            has_email=r.EMAIL_TOKEN in redacted,
            has_phone=r.PHONE_TOKEN in redacted,
            has_ssn=r.SSN_TOKEN in redacted,
            has_credit_card=r.CARD_TOKEN in redacted,
            has_api_key=r.API_KEY_TOKEN in redacted,
            has_password=r.PASSWORD_TOKEN in redacted,
            total_redactions=len(r.PLACEHOLDER_RE.findall(redacted)),
        )

    def update_config(self, **changes) -> None:
        """Replace config fields, e.g. ``update_config(enable_automatic_detection=False)``."""
        self._config = replace(self._config, **changes)
        if self._config.rules is None:
            self._config.rules = r.default_rules()
        if "custom_patterns" in changes:
            self._compiled_custom = self._compile_custom(self._config.custom_patterns)

    def add_custom_rule(self, pattern: str | re.Pattern, replacement: str, enabled: bool = True) -> RedactionRule:
        rule = RedactionRule("custom", pattern, replacement, enabled)
        self._config.rules.append(rule)
        return rule

    def remove_custom_rule(self, index: int) -> None:
        del self._config.rules[index]

    def _apply_automatic_detection(self, text: str) -> str:
        # URL query secrets first so the rest of the URL survives intact.
        text = r.SECRET_URL_RE.sub(
            lambda m: r.SECRET_PARAM_RE.sub(lambda p: f"{p.group(1)}={r.URL_PARAM_TOKEN}", m.group(0)),
            text,
        )
        text = r.PASSWORD_KV_RE.sub(lambda m: f"{m.group(1)}: {r.PASSWORD_TOKEN}", text)
        text = r.TOKEN_KV_RE.sub(lambda m: f"{m.group(1)}: {r.TOKEN_TOKEN}", text)
        text = r.LONG_TOKEN_RE.sub(
            lambda m: r.API_KEY_TOKEN if r.looks_like_api_key(m.group(0)) else m.group(0),
            text,
        )
        return text

    @staticmethod
    def _compile_custom(patterns: list[str]) -> list[re.Pattern]:
        compiled = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                logger.warning("Invalid custom redaction pattern %r: %s", pattern, e)
        return compiled


def create_redaction_engine(config: RedactionConfig | None = None) -> RedactionEngine:
    return RedactionEngine(config)


def redact_memory_content(content: str, pii: bool, rules: list[RedactionRule] | None = None) -> str:
    """Redact ``content`` only when the caller flagged it as PII.

    Every stored free-text field passes through here before it is sent to a
    third-party site.
    """
    if not pii:
        return content
    return _default_engine.redact_text(content, rules)


def should_redact_for_site(site: str, profile_rules: dict | None) -> bool:
    """Site-specific override first, then the profile default, then True."""
    if profile_rules:
        site_rules = profile_rules.get("site_specific_redaction") or {}
        if site in site_rules and site_rules[site] is not None:
            return bool(site_rules[site])
        default = profile_rules.get("default_redaction")
        if default is not None:
            return bool(default)
    return True


_default_engine = RedactionEngine()
