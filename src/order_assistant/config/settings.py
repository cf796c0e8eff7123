"""
Configuration settings for the ordering assistant
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


# Language model backend: "anthropic", "openai" or "none"
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "anthropic").strip().lower()
LLM_MODEL = os.getenv("LLM_MODEL", "claude-3-5-sonnet-latest")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
ANTHROPIC_API_URL = os.getenv("ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages")
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")

LLM_TIMEOUT_SECONDS = _env_float("LLM_TIMEOUT_SECONDS", 30.0)
# Deadline for a whole completion, retries and backoff included
LLM_TOTAL_TIMEOUT_SECONDS = _env_float("LLM_TOTAL_TIMEOUT_SECONDS", 45.0)
LLM_MAX_RETRIES = _env_int("LLM_MAX_RETRIES", 3)
LLM_MAX_TOKENS = _env_int("LLM_MAX_TOKENS", 2000)
LLM_TEMPERATURE = _env_float("LLM_TEMPERATURE", 0.7)
LLM_RATE_LIMIT_COOLDOWN_SECONDS = _env_float("LLM_RATE_LIMIT_COOLDOWN_SECONDS", 60.0)

# Session retention
MAX_MESSAGES_PER_SESSION = _env_int("MAX_MESSAGES_PER_SESSION", 100)
CONTEXT_MAX_AGE_HOURS = _env_float("CONTEXT_MAX_AGE_HOURS", 24.0)
CONTEXT_REAP_INTERVAL_HOURS = _env_float("CONTEXT_REAP_INTERVAL_HOURS", 2.0)
HISTORY_RETENTION_HOURS = _env_float("HISTORY_RETENTION_HOURS", 24.0)
HISTORY_SWEEP_INTERVAL_HOURS = _env_float("HISTORY_SWEEP_INTERVAL_HOURS", 6.0)

# Restaurant presentation
RESTAURANT_NAME = os.getenv("RESTAURANT_NAME", "Delicia")
ASSISTANT_NAME = os.getenv("ASSISTANT_NAME", "Clara")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "RD$")

# Agent configuration
AGENT_NAME = os.getenv("AGENT_NAME", "order_assistant")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass
class AssistantSettings:
    """Everything the assistant accepts from its host process."""

    llm_provider: str = LLM_PROVIDER
    llm_model: str = LLM_MODEL
    anthropic_api_key: str = ANTHROPIC_API_KEY
    anthropic_api_url: str = ANTHROPIC_API_URL
    anthropic_version: str = ANTHROPIC_VERSION
    openai_api_key: str = OPENAI_API_KEY
    openai_api_url: str = OPENAI_API_URL
    llm_timeout_seconds: float = LLM_TIMEOUT_SECONDS
    llm_total_timeout_seconds: float = LLM_TOTAL_TIMEOUT_SECONDS
    llm_max_retries: int = LLM_MAX_RETRIES
    llm_max_tokens: int = LLM_MAX_TOKENS
    llm_temperature: float = LLM_TEMPERATURE
    llm_rate_limit_cooldown_seconds: float = LLM_RATE_LIMIT_COOLDOWN_SECONDS

    max_messages_per_session: int = MAX_MESSAGES_PER_SESSION
    context_max_age_hours: float = CONTEXT_MAX_AGE_HOURS
    context_reap_interval_hours: float = CONTEXT_REAP_INTERVAL_HOURS
    history_retention_hours: float = HISTORY_RETENTION_HOURS
    history_sweep_interval_hours: float = HISTORY_SWEEP_INTERVAL_HOURS

    restaurant_name: str = RESTAURANT_NAME
    assistant_name: str = ASSISTANT_NAME
    currency_symbol: str = CURRENCY_SYMBOL

    @classmethod
    def from_env(cls) -> "AssistantSettings":
        return cls()

    @classmethod
    def offline(cls, **overrides) -> "AssistantSettings":
        """Settings with the language model backend switched off"""
        overrides.setdefault("llm_provider", "none")
        return cls(**overrides)

    @property
    def api_key(self) -> Optional[str]:
        """API key for the selected provider, None when missing"""
        if self.llm_provider == "anthropic":
            return self.anthropic_api_key or None
        if self.llm_provider == "openai":
            return self.openai_api_key or None
        return None

    def validate(self):
        """Reject settings the stores cannot work with"""
        if self.max_messages_per_session < 1:
            raise ValueError(f"MAX_MESSAGES_PER_SESSION must be at least 1, got {self.max_messages_per_session}")
        if self.llm_max_retries < 0:
            raise ValueError(f"LLM_MAX_RETRIES cannot be negative, got {self.llm_max_retries}")
        if self.llm_timeout_seconds <= 0:
            raise ValueError(f"LLM_TIMEOUT_SECONDS must be positive, got {self.llm_timeout_seconds}")
        if self.llm_total_timeout_seconds <= 0:
            raise ValueError(f"LLM_TOTAL_TIMEOUT_SECONDS must be positive, got {self.llm_total_timeout_seconds}")
        for name in ("context_max_age_hours", "context_reap_interval_hours",
                     "history_retention_hours", "history_sweep_interval_hours"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive, got {getattr(self, name)}")
