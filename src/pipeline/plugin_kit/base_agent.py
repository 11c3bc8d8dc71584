# src/pipeline/plugin_kit/base_agent.py - v3
"""Standard agent interface for orchestrator plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel

from dealscope.pipeline.plugin_kit.models import AgentOutput

if TYPE_CHECKING:
    from dealscope.llm.base_client import BaseLLMClient
    from dealscope.pipeline.state import AnalysisState

DEFAULT_PRIORITY = 100


class BaseAgent(ABC):
    """Standard interface for all analysis agents."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique agent identifier (e.g., 'context', 'buyer')."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Agent version (semver)."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this agent does."""

    @property
    @abstractmethod
    def output_schema(self) -> type[BaseModel]:
        """Pydantic model describing the data this agent writes."""

    @property
    def dependencies(self) -> list[str]:
        """List of agent names whose outputs this agent consumes."""
        return []

    @property
    def produces(self) -> list[str]:
        """Output field names written into the shared state."""
        return list(self.output_schema.model_fields)

    @property
    def priority(self) -> int:
        """Ordering hint within a wave (lower first). Never affects concurrency."""
        return DEFAULT_PRIORITY

    @property
    def prompt_file(self) -> str | None:
        """Path to prompt template file."""
        return None

    def is_applicable(self, state: AnalysisState) -> bool:
        """Whether this agent should run for the given state."""
        return True

    @abstractmethod
    async def execute(self, state: AnalysisState, llm: BaseLLMClient) -> AgentOutput:
        """Execute the agent's logic.

        Args:
            state: Read-only snapshot of the analysis state. Outputs of every
                declared dependency are present in ``state.agent_outputs``.
            llm: LLM client for this agent.

        Returns:
            AgentOutput with data, confidence, and metadata.
        """

    def validate_output(self, output: AgentOutput) -> float:
        """Self-validation returning confidence score (0.0-1.0).

        Override for custom validation logic.
        """
        return 1.0

    @property
    def max_refinements(self) -> int:
        """Extra passes allowed while validate_output() is below the quality threshold."""
        return 0

    async def refine(
        self, state: AnalysisState, llm: BaseLLMClient, previous: AgentOutput
    ) -> AgentOutput:
        """Produce an improved output after ``previous`` failed the quality check.

        Only called when max_refinements > 0. Defaults to running execute() again.
        """
        return await self.execute(state, llm)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} deps={self.dependencies!r}>"
