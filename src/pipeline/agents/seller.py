# src/pipeline/agents/seller.py - v1
"""Seller agent: sales performance score and recommended strategy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from dealscope.pipeline.plugin_kit.llm_agent import LLMAgent

if TYPE_CHECKING:
    from dealscope.pipeline.plugin_kit.models import AgentOutput


class SkillsDiagnosis(BaseModel):
    pain_addressed: bool = False
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class NextAction(BaseModel):
    action: str
    suggested_script: str = ""
    deadline: str = ""


class SellerOutput(BaseModel):
    """Rep-side view of the conversation."""

    progress_score: int = Field(ge=0, le=100)
    has_clear_ask: bool = False
    recommended_strategy: Literal["close_now", "small_step", "maintain_relationship"]
    strategy_reason: str = ""
    safety_alert: bool = False
    skills_diagnosis: SkillsDiagnosis = Field(default_factory=SkillsDiagnosis)
    next_action: NextAction


class SellerAgent(LLMAgent):
    """Scores deal progress (0-100) and recommends the next strategy."""

    @property
    def name(self) -> str:
        return "seller"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Sales performance: progress score, strategy, next action"

    @property
    def dependencies(self) -> list[str]:
        return ["context"]

    @property
    def output_schema(self) -> type[BaseModel]:
        return SellerOutput

    @property
    def priority(self) -> int:
        return 3

    def compute_confidence(self, data: dict) -> float:
        return 0.8

    def validate_output(self, output: AgentOutput) -> float:
        # A strategy with no justification is a guess.
        if not output.data.get("strategy_reason", "").strip():
            return min(output.confidence, 0.4)
        return output.confidence
