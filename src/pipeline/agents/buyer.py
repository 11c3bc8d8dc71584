# src/pipeline/agents/buyer.py - v2
"""Buyer agent: customer insight (why not closed, switching concerns, type).

The only built-in agent that refines its own output: an analysis without
customer-type evidence, or without a reason for an open deal, scores below
the default quality threshold and is re-requested up to twice.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from dealscope.pipeline.plugin_kit.llm_agent import LLMAgent
from dealscope.pipeline.plugin_kit.models import AgentOutput

MAX_REFINEMENTS = 2
INCOMPLETE_QUALITY = 0.4


class SwitchConcerns(BaseModel):
    detected: bool = False
    worry_about: Literal["setup", "staff_training", "data_migration", "none"] = "none"
    complexity: Literal["complex", "normal", "simple"] = "normal"


class CustomerType(BaseModel):
    type: Literal["impulsive", "analytical", "cautious"]
    evidence: list[str] = Field(default_factory=list)


class BuyerOutput(BaseModel):
    """Customer-side view of the conversation."""

    not_closed_reason: Literal[
        "price", "needs_owner", "feature_gap", "switching_concerns", "status_quo", "none"
    ]
    not_closed_detail: str = ""
    switch_concerns: SwitchConcerns = Field(default_factory=SwitchConcerns)
    customer_type: CustomerType
    missed_opportunities: list[str] = Field(default_factory=list)
    current_system: Literal["none", "competitor", "existing_customer"] = "none"


class BuyerAgent(LLMAgent):
    refine_instructions = (
        "The previous analysis was incomplete. Quote concrete evidence for the "
        "customer type and state precisely why the deal did not close."
    )

    @property
    def name(self) -> str:
        return "buyer"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Customer insight: objections, switching concerns, customer type"

    @property
    def dependencies(self) -> list[str]:
        return ["context"]

    @property
    def output_schema(self) -> type[BaseModel]:
        return BuyerOutput

    @property
    def priority(self) -> int:
        return 2

    def compute_confidence(self, data: dict) -> float:
        evidence = data.get("customer_type", {}).get("evidence", [])
        return 0.85 if evidence else 0.6

    @property
    def max_refinements(self) -> int:
        return MAX_REFINEMENTS

    def validate_output(self, output: AgentOutput) -> float:
        data = output.data
        evidence = data.get("customer_type", {}).get("evidence", [])
        unexplained = data.get("not_closed_reason") != "none" and not data.get("not_closed_detail")
        if not evidence or unexplained:
            return min(output.confidence, INCOMPLETE_QUALITY)
        return output.confidence
