# tests/integration/conftest.py - v9
"""Shared fixtures for integration tests.

ScriptedLLM is a real BaseLLMClient that answers per agent, so the full
orchestrator stack (registry, scheduler, executor, agents, aggregator,
monitor) runs end to end without network access.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
from pydantic import BaseModel

from dealscope.llm.base_client import BaseLLMClient


class ScriptedLLM(BaseLLMClient):
    """Deterministic LLM client bound to one agent.

    Args:
        payload: JSON object returned on success, or a list answered in turn
            (the last entry repeats once the list is exhausted).
        delay_s: Simulated provider latency.
        error: Exception raised instead of answering.
    """

    provider_name = "scripted"

    def __init__(
        self,
        agent: str,
        payload: dict[str, Any] | list[dict[str, Any]] | None,
        delay_s: float = 0.0,
        error: BaseException | None = None,
    ) -> None:
        super().__init__("scripted", max_tokens_cap=4096)
        self.agent = agent
        self._payload = payload
        self._delay_s = delay_s
        self._error = error
        self.calls: list[str] = []

    async def _generate(
        self,
        prompt: str,
        system: str | None,
        max_tokens: int,
        temperature: float,
        response_format: type[BaseModel] | None,
    ) -> tuple[str, int, int]:
        self.calls.append(prompt)
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        if self._error is not None:
            raise self._error
        return json.dumps(self._next_payload()), 200, 100

    def _next_payload(self) -> dict[str, Any] | None:
        if isinstance(self._payload, list):
            return self._payload[min(len(self.calls), len(self._payload)) - 1]
        return self._payload


class ScriptedFactory:
    """llm_factory handing each agent its own ScriptedLLM."""

    def __init__(
        self,
        payloads: dict[str, dict | list[dict]],
        delays: dict[str, float] | None = None,
        errors: dict[str, BaseException] | None = None,
    ) -> None:
        self.clients: dict[str, ScriptedLLM] = {}
        self.payloads = dict(payloads)
        self._delays = delays or {}
        self._errors = errors or {}

    def __call__(self, agent_name: str) -> ScriptedLLM:
        if agent_name not in self.clients:
            self.clients[agent_name] = ScriptedLLM(
                agent_name,
                self.payloads.get(agent_name),
                delay_s=self._delays.get(agent_name, 0.0),
                error=self._errors.get(agent_name),
            )
        return self.clients[agent_name]

    def call_count(self, agent_name: str) -> int:
        client = self.clients.get(agent_name)
        return len(client.calls) if client else 0


@pytest.fixture
def scripted_factory(agent_payloads):
    def _make(**kwargs) -> ScriptedFactory:
        return ScriptedFactory(agent_payloads, **kwargs)

    return _make
