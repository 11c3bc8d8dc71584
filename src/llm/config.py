# src/llm/config.py - v3
"""Which provider:model each agent talks to.

The first usable "provider:model" value wins, in this order:
LLM_<AGENT>, LLM_GROUP_<GROUP> (see config/agents.py), then
LLM_DEFAULT_PROVIDER + LLM_DEFAULT_MODEL, then gemini-2.0-flash.
"""

from __future__ import annotations

from dataclasses import dataclass

from dealscope.config.agents import AGENT_GROUP_MAP
from dealscope.config.settings import Settings

FALLBACK = "google:gemini-2.0-flash"


@dataclass(frozen=True)
class LLMAssignment:
    provider: str
    model: str
    source: str  # agent | group | default | fallback

    @property
    def key(self) -> str:
        return f"{self.provider}:{self.model}"


def resolve_llm(agent: str, settings: Settings) -> LLMAssignment:
    """Resolve the provider and model for ``agent`` (unknown agents use the default)."""
    group = next((g for g, members in AGENT_GROUP_MAP.items() if agent in members), None)
    default = ""
    if settings.llm_default_provider and settings.llm_default_model:
        default = f"{settings.llm_default_provider}:{settings.llm_default_model}"

    candidates = [
        ("agent", getattr(settings, f"llm_{agent}", "")),
        ("group", getattr(settings, f"llm_group_{group}", "") if group else ""),
        ("default", default),
    ]
    for source, value in candidates:
        provider, sep, model = (value or "").partition(":")
        if sep and provider.strip() and model.strip():
            return LLMAssignment(provider.strip(), model.strip(), source)
    provider, _, model = FALLBACK.partition(":")
    return LLMAssignment(provider, model, "fallback")
