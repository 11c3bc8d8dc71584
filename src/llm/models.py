# src/llm/models.py - v3
"""Provider-neutral result of one completion."""

from __future__ import annotations

from pydantic import BaseModel


class LLMResponse(BaseModel):
    """Text answer plus the usage figures agents fold into AgentMetadata."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str
    provider: str
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens
