# src/pipeline/agents/context.py - v1
"""Context agent: who decides, how urgent, and why the customer is talking.

First wave. Every other agent builds on its output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from dealscope.pipeline.plugin_kit.llm_agent import LLMAgent

if TYPE_CHECKING:
    from dealscope.pipeline.plugin_kit.models import AgentOutput
    from dealscope.pipeline.state import AnalysisState


class ContextOutput(BaseModel):
    """Meeting background and constraints."""

    decision_maker: Literal["owner", "employee_representative", "employee_only", "unknown"]
    decision_maker_confirmed: bool = False
    urgency_level: Literal["high", "medium", "low"]
    deadline_date: str | None = None
    customer_motivation: Literal[
        "new_location", "system_failure", "contract_expiry", "cost_saving", "other"
    ] = "other"
    barriers: list[str] = Field(default_factory=list)
    meta_consistent: bool = True


class ContextAgent(LLMAgent):
    """Extracts decision-maker, urgency and motivation from the transcript."""

    temperature = 0.2

    @property
    def name(self) -> str:
        return "context"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Meeting background: decision maker, urgency, motivation, barriers"

    @property
    def output_schema(self) -> type[BaseModel]:
        return ContextOutput

    @property
    def priority(self) -> int:
        return 1

    def is_applicable(self, state: AnalysisState) -> bool:
        return bool(state.transcript)

    def compute_confidence(self, data: dict) -> float:
        return 0.9 if data.get("decision_maker_confirmed") else 0.7

    def validate_output(self, output: AgentOutput) -> float:
        if output.data.get("decision_maker") == "unknown":
            return min(output.confidence, 0.5)
        return output.confidence
