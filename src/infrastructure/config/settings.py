"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses for safety and clarity
- Single source of truth for all configurable values
- Out-of-range numeric values fall back to defaults instead of failing startup

EXTENSIBILITY:
- To point at a proxy or tunnel: set GEMINI_API_BASE
- To change the model fallback chain: set AI_REPLY_MODELS (comma-separated)
"""

import math
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load .env file if present (development convenience)
load_dotenv()


DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL_LIST = "gemini-2.5-flash,gemini-2.0-flash,gemini-2.0-flash-lite"
DEFAULT_TIMEOUT_MS = 12000
MIN_TIMEOUT_MS = 2000
DEFAULT_MAX_ATTEMPTS = 1
MAX_ATTEMPTS_CEILING = 3


def _first_env(*names: str) -> Optional[str]:
    """Value of the first set environment variable among names."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def normalize_api_base(raw: Optional[str]) -> str:
    """Strip trailing slashes and an OpenAI-compat '/openai' suffix."""
    if not raw or not raw.strip():
        return DEFAULT_API_BASE
    normalized = raw.strip().rstrip("/")
    if normalized.endswith("/openai"):
        normalized = normalized[: -len("/openai")]
    return normalized


def parse_model_list(raw: Optional[str]) -> Tuple[str, ...]:
    """Comma-separated model ids, priority order, 'models/' prefix removed."""
    configured = DEFAULT_MODEL_LIST if raw is None else raw
    models = []
    for value in configured.split(","):
        value = value.strip()
        if value.startswith("models/"):
            value = value[len("models/"):]
        if value:
            models.append(value)
    return tuple(models)


def parse_timeout_ms(raw: Optional[str]) -> int:
    try:
        value = float(raw) if raw is not None else None
    except ValueError:
        return DEFAULT_TIMEOUT_MS
    if value is None or not math.isfinite(value) or value < MIN_TIMEOUT_MS:
        return DEFAULT_TIMEOUT_MS
    return int(value)


def parse_max_attempts(raw: Optional[str]) -> int:
    try:
        value = float(raw) if raw is not None else None
    except ValueError:
        return DEFAULT_MAX_ATTEMPTS
    if value is None or not (1 <= value <= MAX_ATTEMPTS_CEILING):
        return DEFAULT_MAX_ATTEMPTS
    return int(value)


def _to_bool(raw: Optional[str], default: bool = False) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class LLMSettings:
    """Gemini settings for reply generation."""

    api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", "").strip())
    api_base: str = field(
        default_factory=lambda: normalize_api_base(_first_env("GEMINI_API_BASE", "GEMINI_BASE_URL"))
    )

    # Priority order; a model that is not found moves on to the next one
    models: Tuple[str, ...] = field(
        default_factory=lambda: parse_model_list(
            os.getenv("AI_REPLY_MODELS", os.getenv("GEMINI_REPLY_MODELS"))
        )
    )

    timeout_ms: int = field(default_factory=lambda: parse_timeout_ms(os.getenv("AI_REPLY_TIMEOUT_MS")))
    max_attempts: int = field(default_factory=lambda: parse_max_attempts(os.getenv("AI_REPLY_MAX_ATTEMPTS")))

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def client_signature(self) -> Tuple[str, str]:
        """Identity of the HTTP client; a change means the session is rebuilt."""
        return (self.api_base, self.api_key)


@dataclass(frozen=True)
class WebSettings:
    """Dashboard API server settings."""

    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    reload: bool = field(default_factory=lambda: _to_bool(os.getenv("RELOAD")))


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from src.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.llm.models)
    """

    llm: LLMSettings = field(default_factory=LLMSettings)
    web: WebSettings = field(default_factory=WebSettings)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if not self.llm.api_key:
            issues.append(
                "WARNING: GEMINI_API_KEY not set. "
                "Reply generation requests will fail with missing_api_key."
            )

        if not self.llm.models:
            issues.append(
                "WARNING: AI_REPLY_MODELS is empty. "
                "Replies will come from templates only."
            )

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
