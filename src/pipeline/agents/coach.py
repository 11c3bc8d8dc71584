# src/pipeline/agents/coach.py - v1
"""Coach agent: coaching alert, objection handling review and talk tracks.

Last wave. Consumes the summary and CRM views, so it only runs when the
whole upstream graph succeeded.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from dealscope.pipeline.plugin_kit.llm_agent import LLMAgent


class Improvement(BaseModel):
    area: str
    suggestion: str


class DetectedObjection(BaseModel):
    type: str
    customer_quote: str = ""
    timestamp_hint: str = ""


class ObjectionHandling(BaseModel):
    objection_type: str
    handled: bool = False
    effectiveness: Literal["full", "partial", "none"] = "none"
    suggestion: str = ""


class FollowUp(BaseModel):
    timing: str = ""
    method: str = ""
    notes: str = ""


class CoachOutput(BaseModel):
    alert_triggered: bool = False
    alert_type: Literal["close_now", "missed_dm", "excellent", "low_progress", "none"] = "none"
    alert_severity: Literal["critical", "high", "medium", "low"] = "low"
    alert_message: str = ""
    coaching_notes: str
    strengths: list[str] = Field(default_factory=list)
    improvements: list[Improvement] = Field(default_factory=list)
    detected_objections: list[DetectedObjection] = Field(default_factory=list)
    objection_handling: list[ObjectionHandling] = Field(default_factory=list)
    suggested_talk_tracks: list[str] = Field(default_factory=list)
    follow_up: FollowUp = Field(default_factory=FollowUp)
    manager_alert: bool = False
    manager_alert_reason: str | None = None


class CoachAgent(LLMAgent):
    """Real-time coaching for the sales rep."""

    @property
    def name(self) -> str:
        return "coach"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Coaching alerts, objection handling review, suggested talk tracks"

    @property
    def dependencies(self) -> list[str]:
        return ["summary", "crm"]

    @property
    def output_schema(self) -> type[BaseModel]:
        return CoachOutput

    @property
    def priority(self) -> int:
        return 6

    def compute_confidence(self, data: dict) -> float:
        return 0.75 if data.get("suggested_talk_tracks") else 0.6
