# src/tracking/models.py - v2
"""Tracking domain models: ExecutionEvent, RunStats, RunMetrics, MonitorSummary."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

EventStatus = Literal["running", "success", "failed", "timed_out", "skipped"]


class ExecutionEvent(BaseModel):
    """Single agent state transition."""

    analysis_id: str
    agent: str
    status: EventStatus
    wave: int
    timestamp: datetime
    attempt: int = 1
    error: str | None = None


class RunStats(BaseModel):
    """Statistics derived from the events of one run."""

    analysis_id: str
    total_agents: int = 0
    success_count: int = 0
    failure_count: int = 0
    timeout_count: int = 0
    skipped_count: int = 0
    avg_duration_s: float = 0.0
    wall_clock_s: float = 0.0
    parallelism_ratio: float = 1.0


class RunMetrics(BaseModel):
    """Performance record of a finished run."""

    analysis_id: str
    total_time_s: float
    parallelism_ratio: float
    speedup_pct: float
    success_count: int
    failure_count: int
    timeout_count: int
    skipped_count: int
    execution_order: list[str] = Field(default_factory=list)
    agent_timings_s: dict[str, float] = Field(default_factory=dict)
    wave_count: int = 0
    parallelism_by_wave: dict[int, int] = Field(default_factory=dict)


class MonitorSummary(BaseModel):
    """Cross-run aggregate over the monitor's history."""

    total_runs: int = 0
    avg_time_s: float = 0.0
    avg_parallelism_ratio: float = 0.0
    avg_speedup_pct: float = 0.0
    success_rate_pct: float = 0.0


def parallelism_ratio(durations: list[float], wall_clock_s: float) -> float:
    """Sum of agent durations divided by wall clock (1.0 when nothing elapsed)."""
    if wall_clock_s <= 0:
        return 1.0
    return sum(durations) / wall_clock_s
