# src/pipeline/agents/summary.py - v1
"""Summary agent: customer-facing SMS follow-up and markdown meeting notes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field

from dealscope.pipeline.plugin_kit.llm_agent import LLMAgent

if TYPE_CHECKING:
    from dealscope.pipeline.plugin_kit.models import AgentOutput

SMS_MAX_CHARS = 160


class HookPoint(BaseModel):
    customer_interest: str = ""
    customer_quote: str = ""


class ActionItems(BaseModel):
    vendor: list[str] = Field(default_factory=list)
    customer: list[str] = Field(default_factory=list)


class SummaryOutput(BaseModel):
    sms_text: str
    hook_point: HookPoint = Field(default_factory=HookPoint)
    tone_used: Literal["casual", "formal"] = "casual"
    markdown: str
    pain_points: list[str] = Field(default_factory=list)
    solutions: list[str] = Field(default_factory=list)
    key_decisions: list[str] = Field(default_factory=list)
    action_items: ActionItems = Field(default_factory=ActionItems)


class SummaryAgent(LLMAgent):
    """Writes the follow-up SMS and meeting summary from buyer and seller views."""

    @property
    def name(self) -> str:
        return "summary"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Customer-oriented meeting summary (SMS + markdown)"

    @property
    def dependencies(self) -> list[str]:
        return ["buyer", "seller"]

    @property
    def output_schema(self) -> type[BaseModel]:
        return SummaryOutput

    @property
    def priority(self) -> int:
        return 4

    def prompt_variables(self, state) -> dict[str, Any]:
        variables = super().prompt_variables(state)
        variables["sms_max_chars"] = SMS_MAX_CHARS
        return variables

    def compute_confidence(self, data: dict) -> float:
        return 0.8

    def validate_output(self, output: AgentOutput) -> float:
        sms = output.data.get("sms_text", "")
        if not sms.strip() or not output.data.get("markdown", "").strip():
            return 0.0
        if len(sms) > SMS_MAX_CHARS:
            return min(output.confidence, 0.5)
        return output.confidence
