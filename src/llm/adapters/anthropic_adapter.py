# src/llm/adapters/anthropic_adapter.py - v4
"""Claude through the anthropic SDK.

A response schema is enforced by forcing one tool call whose input schema is
the agent's output model; the tool input is returned as JSON text.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from dealscope.llm.base_client import BaseLLMClient

ANALYSIS_TOOL = "record_analysis"


class AnthropicAdapter(BaseLLMClient):
    provider_name = "anthropic"

    def __init__(self, model: str = "claude-sonnet-4-20250514", api_key: str | None = None,
                 max_tokens_cap: int = 8192) -> None:
        super().__init__(model, api_key, max_tokens_cap)
        self._sdk = None

    def _client(self):
        if self._sdk is None:
            import anthropic

            self._sdk = anthropic.AsyncAnthropic(api_key=self._api_key or "")
        return self._sdk

    async def _generate(self, prompt, system, max_tokens, temperature, response_format):
        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system
        if response_format is not None:
            request["tools"] = [_analysis_tool(response_format)]
            request["tool_choice"] = {"type": "tool", "name": ANALYSIS_TOOL}

        response = await self._client().messages.create(**request)
        return (
            _answer_text(response.content, structured=response_format is not None),
            response.usage.input_tokens,
            response.usage.output_tokens,
        )


def _analysis_tool(schema: type[BaseModel]) -> dict[str, Any]:
    return {
        "name": ANALYSIS_TOOL,
        "description": f"Record the {schema.__name__} for this conversation",
        "input_schema": schema.model_json_schema(),
    }


def _answer_text(blocks: list[Any], structured: bool) -> str:
    wanted = "tool_use" if structured else "text"
    for block in blocks:
        if getattr(block, "type", None) == wanted:
            return json.dumps(block.input) if structured else block.text
    return ""
