"""Runtime configuration, read from SYNCIFY_* environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:3003"

DEFAULT_ALLOWED_DOMAINS = [
    "chatgpt.com",
    "chat.openai.com",
    "claude.ai",
    "claude.com",
    "gemini.google.com",
    "gemini.com",
    "grok.com",
    "x.com",
    "deepseek.com",
]


@dataclass
class SyncifyConfig:
    """Settings shared by the extraction engine and the API client."""

    api_base_url: str = DEFAULT_API_BASE_URL
    debounce_ms: int = 500
    max_content_length: int = 50000
    short_text_threshold: int = 50
    min_dom_text_length: int = 10
    redact_captures: bool = True
    auto_capture: bool = True
    auto_inject: bool = True
    telemetry: bool = True
    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: float = 30.0
    allowed_domains: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_DOMAINS))

    @classmethod
    def from_env(cls) -> SyncifyConfig:
        """Build a config from the environment, falling back to defaults."""
        config = cls(
            api_base_url=os.environ.get("SYNCIFY_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            debounce_ms=_env_int("SYNCIFY_DEBOUNCE_MS", 500),
            max_content_length=_env_int("SYNCIFY_MAX_CONTENT_LENGTH", 50000),
            short_text_threshold=_env_int("SYNCIFY_SHORT_TEXT_THRESHOLD", 50),
            min_dom_text_length=_env_int("SYNCIFY_MIN_DOM_TEXT_LENGTH", 10),
            redact_captures=_env_bool("SYNCIFY_REDACT_CAPTURES", True),
            auto_capture=_env_bool("SYNCIFY_AUTO_CAPTURE", True),
            auto_inject=_env_bool("SYNCIFY_AUTO_INJECT", True),
            telemetry=_env_bool("SYNCIFY_TELEMETRY", True),
            max_retries=_env_int("SYNCIFY_MAX_RETRIES", 3),
            retry_delay=_env_float("SYNCIFY_RETRY_DELAY", 1.0),
            timeout=_env_float("SYNCIFY_TIMEOUT", 30.0),
        )
        domains = os.environ.get("SYNCIFY_ALLOWED_DOMAINS")
        if domains:
            config.allowed_domains = [d.strip().lower() for d in domains.split(",") if d.strip()]
        return config


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}
