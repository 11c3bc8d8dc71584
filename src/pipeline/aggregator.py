# src/pipeline/aggregator.py - v2
"""Fold a BatchExecutionResult into the caller-facing AnalysisResult.

Partial runs produce a best-effort result. Agents that failed or timed out
are listed as such; the sections lost because an upstream agent broke are
listed as degraded.
Only a run where no first-wave agent succeeded raises AnalysisFailedError.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field

from dealscope.pipeline.errors import AnalysisFailedError

if TYPE_CHECKING:
    from dealscope.pipeline.dag_builder import ExecutionPlan
    from dealscope.pipeline.dag_executor import BatchExecutionResult
    from dealscope.pipeline.state import AnalysisState

logger = logging.getLogger(__name__)


class Risk(BaseModel):
    risk: str
    severity: Literal["high", "medium", "low"] = "medium"
    source: str


class AnalysisResult(BaseModel):
    """Final analysis handed to persistence and notification collaborators."""

    analysis_id: str
    lead_id: str
    status: Literal["complete", "partial"]
    sections: dict[str, dict[str, Any]] = Field(default_factory=dict)
    degraded_sections: list[str] = Field(default_factory=list)
    failed_agents: list[str] = Field(default_factory=list)
    timed_out_agents: list[str] = Field(default_factory=list)
    skipped_agents: list[str] = Field(default_factory=list)
    agent_statuses: dict[str, str] = Field(default_factory=dict)
    refinements: dict[str, int] = Field(default_factory=dict)
    risks: list[Risk] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duration_s: float = 0.0
    parallelism_ratio: float = 1.0
    total_tokens_used: int = 0
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_partial(self) -> bool:
        return self.status == "partial"

    def section(self, name: str) -> dict[str, Any] | None:
        return self.sections.get(name)


def aggregate(
    batch: BatchExecutionResult,
    plan: ExecutionPlan | None = None,
    competitor_keywords: list[str] | None = None,
) -> AnalysisResult:
    """Build the AnalysisResult for one run.

    Args:
        batch: Executor output.
        plan: Plan the batch was executed with; defaults to ``batch.stages``.
        competitor_keywords: Keywords flagged as competitor-mention risks.

    Raises:
        AnalysisFailedError: If no agent of the first wave succeeded.
    """
    stages = plan.stages if plan is not None else batch.stages
    order = [name for stage in stages for name in stage]
    by_agent = batch.results_by_agent

    first_wave = stages[0] if stages else []
    if not any(
        name in by_agent and by_agent[name].status == "success" for name in first_wave
    ):
        logger.error("First wave produced no usable output: %s", first_wave)
        raise AnalysisFailedError(first_wave)

    state = batch.state
    sections: dict[str, dict[str, Any]] = {}
    degraded: list[str] = []
    statuses: dict[str, str] = {}
    warnings: list[str] = []

    for name in order:
        result = by_agent.get(name)
        status = result.status if result is not None else "skipped"
        statuses[name] = status
        if status == "success" and state.has_output(name):
            output = state.agent_outputs[name]
            sections[name] = output.data
            warnings.extend(f"{name}: {w}" for w in output.warnings)
        elif result is None or result.blocked_by_dependency:
            # Lost to an upstream failure.
            degraded.append(name)

    risks = _extract_risks(state, sections, competitor_keywords or [])
    complete = all(status == "success" for status in statuses.values())

    result = AnalysisResult(
        analysis_id=state.analysis_id,
        lead_id=state.metadata.lead_id,
        status="complete" if complete else "partial",
        sections=sections,
        degraded_sections=degraded,
        failed_agents=[n for n in order if statuses[n] == "failed"],
        timed_out_agents=[n for n in order if statuses[n] == "timed_out"],
        skipped_agents=[n for n in order if statuses[n] == "skipped"],
        agent_statuses=statuses,
        refinements={r.agent_name: r.refinements for r in batch.results if r.refinements},
        risks=risks,
        warnings=warnings,
        duration_s=batch.duration_s,
        parallelism_ratio=batch.parallelism_ratio,
        total_tokens_used=state.total_tokens_used,
    )

    if not complete:
        logger.warning(
            "Partial analysis %s: failed %s, timed out %s, degraded sections %s",
            state.analysis_id,
            result.failed_agents,
            result.timed_out_agents,
            degraded,
        )
    else:
        logger.info("Complete analysis %s (%d sections)", state.analysis_id, len(sections))
    return result


def _extract_risks(
    state: AnalysisState, sections: dict[str, dict[str, Any]], keywords: list[str]
) -> list[Risk]:
    risks = [
        Risk(risk=f"Competitor mentioned: {kw}", severity="medium", source="transcript")
        for kw in state.competitor_mentions(keywords)
    ]
    seller = sections.get("seller")
    if seller and seller.get("safety_alert"):
        risks.append(
            Risk(
                risk=seller.get("strategy_reason") or "Deal at risk",
                severity="high",
                source="seller",
            )
        )
    coach = sections.get("coach")
    if coach and coach.get("manager_alert"):
        risks.append(
            Risk(
                risk=coach.get("manager_alert_reason") or "Manager attention required",
                severity="high",
                source="coach",
            )
        )
    return risks
