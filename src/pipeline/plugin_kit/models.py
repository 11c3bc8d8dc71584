# src/pipeline/plugin_kit/models.py - v3
"""Agent plugin models: AgentMetadata, AgentOutput, AgentExecutionResult."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

AgentStatus = Literal["pending", "running", "success", "failed", "timed_out", "skipped"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"success", "failed", "timed_out", "skipped"})

DEPENDENCY_SKIP_REASON = "dependency not satisfied"


class AgentMetadata(BaseModel):
    """Metadata about an agent execution, attached to every AgentOutput."""

    agent_name: str
    agent_version: str
    execution_time_ms: int
    llm_calls: int
    tokens_used: int
    prompt_hash: str | None = None
    model: str | None = None


class AgentOutput(BaseModel):
    """Standard return type for all BaseAgent.execute() calls."""

    data: dict[str, Any]
    confidence: float
    metadata: AgentMetadata
    warnings: list[str] = Field(default_factory=list)


class AgentExecutionResult(BaseModel):
    """Terminal record for one agent in one run.

    ``output`` is present iff status is success; ``error`` is present iff
    status is failed or timed_out. Skipped agents carry ``skip_reason``.
    """

    agent_name: str
    status: Literal["success", "failed", "timed_out", "skipped"]
    wave: int
    output: AgentOutput | None = None
    error: str | None = None
    error_type: str | None = None
    skip_reason: str | None = None
    attempts: int = 0
    refinements: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> AgentExecutionResult:
        if (self.status == "success") != (self.output is not None):
            raise ValueError("output must be present iff status is 'success'")
        if (self.status in ("failed", "timed_out")) != (self.error is not None):
            raise ValueError("error must be present iff status is failed/timed_out")
        return self

    @property
    def duration_s(self) -> float:
        """Wall time spent in the agent (0.0 for skipped agents)."""
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def blocked_by_dependency(self) -> bool:
        """Skipped because an upstream agent did not succeed."""
        return self.status == "skipped" and (self.skip_reason or "").startswith(
            DEPENDENCY_SKIP_REASON
        )
