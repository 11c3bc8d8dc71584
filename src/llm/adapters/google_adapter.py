# src/llm/adapters/google_adapter.py - v3
"""Gemini through the google-generativeai SDK (JSON mime type for schemas)."""

from __future__ import annotations

from dealscope.llm.base_client import BaseLLMClient


class GoogleAdapter(BaseLLMClient):
    provider_name = "google"

    def __init__(self, model: str = "gemini-2.0-flash", api_key: str | None = None,
                 max_tokens_cap: int = 8192) -> None:
        super().__init__(model, api_key, max_tokens_cap)

    async def _generate(self, prompt, system, max_tokens, temperature, response_format):
        import google.generativeai as genai

        genai.configure(api_key=self._api_key or "")
        gemini = genai.GenerativeModel(self.model, system_instruction=system)
        config = {"max_output_tokens": max_tokens, "temperature": temperature}
        if response_format is not None:
            config["response_mime_type"] = "application/json"

        response = await gemini.generate_content_async(prompt, generation_config=config)
        usage = getattr(response, "usage_metadata", None)
        return (
            response.text or "",
            getattr(usage, "prompt_token_count", 0),
            getattr(usage, "candidates_token_count", 0),
        )
