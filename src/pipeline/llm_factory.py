# src/pipeline/llm_factory.py - v3
"""Per-agent LLM clients for the executor.

resolve_llm() picks provider:model per agent; one client is built per
distinct assignment and shared by every agent routed to it. Provider SDKs
are imported only when their adapter is first built.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dealscope.llm.config import LLMAssignment, resolve_llm

if TYPE_CHECKING:
    from dealscope.config.settings import Settings
    from dealscope.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

PROVIDERS = ("anthropic", "google")


class UnsupportedProviderError(ValueError):
    """An agent is routed to a provider with no adapter."""


def build_client(assignment: LLMAssignment, settings: Settings) -> BaseLLMClient:
    """Instantiate the adapter for ``assignment`` with keys and caps from settings."""
    if assignment.provider == "anthropic":
        from dealscope.llm.adapters.anthropic_adapter import AnthropicAdapter

        return AnthropicAdapter(
            assignment.model, settings.anthropic_api_key, settings.llm_max_tokens_per_agent
        )
    if assignment.provider == "google":
        from dealscope.llm.adapters.google_adapter import GoogleAdapter

        return GoogleAdapter(
            assignment.model, settings.google_api_key, settings.llm_max_tokens_per_agent
        )
    raise UnsupportedProviderError(
        f"Unsupported LLM provider {assignment.provider!r} ({assignment.source} setting); "
        f"available: {', '.join(PROVIDERS)}"
    )


class LLMFactory:
    """Callable ``llm_factory`` for DAGExecutor, caching clients by provider:model."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._clients: dict[str, BaseLLMClient] = {}

    def get_client(self, agent_name: str) -> BaseLLMClient:
        assignment = resolve_llm(agent_name, self._settings)
        client = self._clients.get(assignment.key)
        if client is None:
            client = self._clients[assignment.key] = build_client(assignment, self._settings)
            logger.info(
                "LLM for '%s': %s (%s setting)", agent_name, assignment.key, assignment.source
            )
        return client

    __call__ = get_client
