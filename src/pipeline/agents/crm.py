# src/pipeline/agents/crm.py - v1
"""CRM agent: structured opportunity fields for CRM sync."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from dealscope.pipeline.plugin_kit.llm_agent import LLMAgent

Level = Literal["high", "medium", "low"]


class Budget(BaseModel):
    range: str = ""
    mentioned: bool = False
    decision_maker: str = ""


class DecisionMaker(BaseModel):
    name: str
    role: str = ""
    influence: Level = "medium"


class Timeline(BaseModel):
    decision_date: str | None = None
    urgency: Level = "medium"
    notes: str = ""


class CRMOutput(BaseModel):
    stage_name: str
    stage_confidence: Level = "medium"
    stage_reasoning: str = ""
    budget: Budget = Field(default_factory=Budget)
    decision_makers: list[DecisionMaker] = Field(default_factory=list)
    pain_points: list[str] = Field(default_factory=list)
    timeline: Timeline = Field(default_factory=Timeline)
    next_steps: list[str] = Field(default_factory=list)


_STAGE_CONFIDENCE = {"high": 0.9, "medium": 0.7, "low": 0.5}


class CRMAgent(LLMAgent):
    temperature = 0.1

    @property
    def name(self) -> str:
        return "crm"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "CRM extraction: stage, budget, decision makers, timeline"

    @property
    def dependencies(self) -> list[str]:
        return ["buyer"]

    @property
    def output_schema(self) -> type[BaseModel]:
        return CRMOutput

    @property
    def priority(self) -> int:
        return 5

    def compute_confidence(self, data: dict) -> float:
        return _STAGE_CONFIDENCE.get(data.get("stage_confidence", "medium"), 0.7)
