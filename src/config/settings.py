# src/config/settings.py - v3
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: LLM routing,
executor limits, agent selection and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    llm_default_provider: str = "google"
    llm_default_model: str = "gemini-2.0-flash"
    llm_default_temperature: float = 0.3
    llm_max_tokens_per_agent: int = 8192

    # Provider API keys
    anthropic_api_key: str = ""
    google_api_key: str = ""

    # Per-group LLM assignment
    llm_group_extraction: str = ""
    llm_group_scoring: str = ""
    llm_group_synthesis: str = ""

    # Per-agent LLM assignment (highest priority)
    llm_context: str = ""
    llm_buyer: str = ""
    llm_seller: str = ""
    llm_summary: str = ""
    llm_crm: str = ""
    llm_coach: str = ""

    # === Executor ===
    agent_timeout_s: float = 120.0
    agent_max_retries: int = 0
    agent_retry_base_delay_s: float = 2.0
    agent_retry_on_timeout: bool = False
    min_output_quality: float = 0.5
    agent_max_refinements: int = 2

    # === Agents ===
    disabled_agents: str = ""
    default_product_line: str = "default"
    competitor_keywords: str = "competitor,other vendor,other brand,POS,another system"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("agent_max_retries", "agent_max_refinements")
    @classmethod
    def validate_non_negative(cls, v: int, info: ValidationInfo) -> int:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.agent_timeout_s <= 0:
            errors.append("AGENT_TIMEOUT_S must be > 0")

        if self.agent_retry_base_delay_s < 0:
            errors.append("AGENT_RETRY_BASE_DELAY_S must be >= 0")

        if not 0.0 <= self.min_output_quality <= 1.0:
            errors.append("MIN_OUTPUT_QUALITY must be within [0, 1]")

        if self.agent_retry_on_timeout and self.agent_max_retries == 0:
            errors.append("AGENT_RETRY_ON_TIMEOUT requires AGENT_MAX_RETRIES > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def disabled_agents_list(self) -> list[str]:
        """Parse comma-separated disabled agent names."""
        return _split_csv(self.disabled_agents)

    @property
    def competitor_keywords_list(self) -> list[str]:
        """Parse comma-separated competitor keywords."""
        return _split_csv(self.competitor_keywords)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-request config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
