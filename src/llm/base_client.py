# src/llm/base_client.py - v3
"""Provider-neutral LLM client.

Agents only ever need one capability: send a single prompt, optionally
constrained to a response schema, and get text back or an exception.
complete() owns the token cap and latency measurement; providers implement
_generate().
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

from pydantic import BaseModel

from dealscope.llm.models import LLMResponse


class BaseLLMClient(ABC):
    """One model on one provider."""

    provider_name: str = "unknown"

    def __init__(self, model: str, api_key: str | None = None, max_tokens_cap: int = 8192) -> None:
        self.model = model
        self._api_key = api_key
        self._max_tokens_cap = max_tokens_cap

    async def complete(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.3,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        """Send ``prompt``; with ``response_format`` the answer is a JSON object."""
        start = time.monotonic()
        content, input_tokens, output_tokens = await self._generate(
            prompt, system, min(max_tokens, self._max_tokens_cap), temperature, response_format
        )
        return LLMResponse(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=self.model,
            provider=self.provider_name,
            latency_ms=int((time.monotonic() - start) * 1000),
        )

    @abstractmethod
    async def _generate(
        self,
        prompt: str,
        system: str | None,
        max_tokens: int,
        temperature: float,
        response_format: type[BaseModel] | None,
    ) -> tuple[str, int, int]:
        """Call the provider. Returns (text, input_tokens, output_tokens)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.provider_name}:{self.model})"
