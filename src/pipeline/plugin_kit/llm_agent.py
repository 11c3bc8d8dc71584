# src/pipeline/plugin_kit/llm_agent.py - v3
"""Shared implementation for prompt-driven agents.

An LLMAgent renders its prompt template with the transcript, the conversation
metadata and the outputs of its declared dependencies, calls the LLM with its
output schema as response format, and validates the JSON reply against that
schema. Any failure along the way raises AgentExecutionError.

refine() re-sends the same prompt followed by the previous output and
``refine_instructions``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from dealscope.pipeline.errors import AgentExecutionError
from dealscope.pipeline.plugin_kit.base_agent import BaseAgent
from dealscope.pipeline.plugin_kit.models import AgentMetadata, AgentOutput

if TYPE_CHECKING:
    from dealscope.llm.base_client import BaseLLMClient
    from dealscope.llm.models import LLMResponse
    from dealscope.pipeline.state import AnalysisState

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

DEFAULT_SYSTEM_PROMPT = (
    "You are an experienced B2B sales analyst. "
    "Respond only with valid JSON matching the requested schema."
)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping a JSON reply."""
    text = text.strip()
    if text.startswith("```"):
        lines = [l for l in text.split("\n") if not l.strip().startswith("```")]
        text = "\n".join(lines)
    return text.strip()


class LLMAgent(BaseAgent):
    """Base class for agents that are one prompt and one LLM call."""

    temperature: float = 0.3
    max_tokens: int = 4096
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    refine_instructions: str = (
        "The previous analysis was incomplete. Provide more specific evidence "
        "from the transcript and make sure every field is justified."
    )

    def __init__(self) -> None:
        self._prompt_template: str | None = None

    @property
    def prompt_file(self) -> str | None:
        return str(PROMPTS_DIR / f"{self.name}.txt")

    def _load_prompt(self) -> str:
        """Load and cache prompt template."""
        if self._prompt_template is None:
            path = self.prompt_file
            if path is None:
                raise AgentExecutionError(self.name, "no prompt template configured")
            try:
                self._prompt_template = Path(path).read_text(encoding="utf-8")
            except OSError as exc:
                raise AgentExecutionError(
                    self.name, f"cannot read prompt template {path}: {exc}", cause=exc
                ) from exc
        return self._prompt_template

    def prompt_variables(self, state: AnalysisState) -> dict[str, Any]:
        """Values substituted into the prompt template.

        Subclasses may extend this; the base set covers transcript, metadata
        and dependency outputs.
        """
        meta = state.metadata
        return {
            "transcript": state.transcript_text() or "(empty transcript)",
            "product_line": meta.product_line,
            "sales_rep": meta.sales_rep or "unknown",
            "conversation_date": (
                meta.conversation_date.isoformat() if meta.conversation_date else "unknown"
            ),
            "dependency_outputs": self._render_dependencies(state),
            "output_schema": json.dumps(self.output_schema.model_json_schema(), indent=2),
        }

    def build_prompt(self, state: AnalysisState) -> str:
        template = self._load_prompt()
        try:
            return template.format(**self.prompt_variables(state))
        except (KeyError, IndexError) as exc:
            raise AgentExecutionError(
                self.name, f"prompt template references unknown field {exc}", cause=exc
            ) from exc

    def _render_dependencies(self, state: AnalysisState) -> str:
        if not self.dependencies:
            return "(none)"
        blocks = []
        for dep in self.dependencies:
            data = state.data_of(dep)
            blocks.append(f"### {dep}\n{json.dumps(data, ensure_ascii=False, indent=2)}")
        return "\n\n".join(blocks)

    def parse_response(self, content: str) -> dict[str, Any]:
        """Parse and validate the LLM reply against ``output_schema``."""
        text = strip_code_fences(content)
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AgentExecutionError(self.name, f"invalid JSON response: {exc}", cause=exc) from exc
        try:
            model = self.output_schema.model_validate(raw)
        except ValidationError as exc:
            raise AgentExecutionError(
                self.name,
                f"response validation failed: {exc.error_count()} error(s)",
                cause=exc,
            ) from exc
        return model.model_dump(mode="json")

    def compute_confidence(self, data: dict[str, Any]) -> float:
        """Confidence attached to a successful output. Override per agent."""
        return 1.0

    def build_refine_prompt(self, state: AnalysisState, previous: AgentOutput) -> str:
        previous_json = json.dumps(previous.data, ensure_ascii=False, indent=2)
        return (
            f"{self.build_prompt(state)}\n\n"
            f"## Previous analysis (needs improvement)\n{previous_json}\n\n"
            f"IMPORTANT: {self.refine_instructions}"
        )

    async def execute(self, state: AnalysisState, llm: BaseLLMClient) -> AgentOutput:
        return await self._run_prompt(self.build_prompt(state), llm)

    async def refine(
        self, state: AnalysisState, llm: BaseLLMClient, previous: AgentOutput
    ) -> AgentOutput:
        return await self._run_prompt(self.build_refine_prompt(state, previous), llm)

    async def _run_prompt(self, prompt: str, llm: BaseLLMClient) -> AgentOutput:
        start_ms = time.monotonic_ns() // 1_000_000
        prompt_hash = hashlib.sha256(prompt.encode()).hexdigest()[:16]

        try:
            response: LLMResponse = await llm.complete(
                prompt,
                system=self.system_prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                response_format=self.output_schema,
            )
        except AgentExecutionError:
            raise
        except Exception as exc:
            raise AgentExecutionError(self.name, f"LLM call failed: {exc}", cause=exc) from exc

        data = self.parse_response(response.content)
        elapsed_ms = (time.monotonic_ns() // 1_000_000) - start_ms

        return AgentOutput(
            data=data,
            confidence=self.compute_confidence(data),
            metadata=AgentMetadata(
                agent_name=self.name,
                agent_version=self.version,
                execution_time_ms=elapsed_ms,
                llm_calls=1,
                tokens_used=response.input_tokens + response.output_tokens,
                prompt_hash=prompt_hash,
                model=response.model,
            ),
        )
