# src/tracking/performance_monitor.py - v2
"""Passive observer of agent state transitions.

The executor reports every transition (running, success, failed, timed_out,
skipped). The monitor only accumulates in memory; it never influences
control flow. Events carry the analysis_id so one monitor can be shared by
concurrent runs.

Memory is bounded: the events of a finished run are kept
only while its metrics are in the history, and at most ``max_unfinished``
runs that never reported completion are tracked.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from dealscope.tracking.models import (
    EventStatus,
    ExecutionEvent,
    MonitorSummary,
    RunMetrics,
    RunStats,
    parallelism_ratio,
)

if TYPE_CHECKING:
    from dealscope.pipeline.dag_executor import BatchExecutionResult

logger = logging.getLogger(__name__)

_RAN_STATUSES = ("success", "failed", "timed_out")


class PerformanceMonitor:
    """Accumulates execution events and per-run metrics.

    Args:
        max_history: Number of finished runs kept for summary(). Their events
            are retained alongside.
        max_unfinished: Number of in-flight or abandoned runs whose events
            are retained; the oldest are dropped first.
    """

    def __init__(self, max_history: int = 100, max_unfinished: int = 100) -> None:
        self._max_unfinished = max_unfinished
        self._events: dict[str, list[ExecutionEvent]] = {}
        self._finished: set[str] = set()
        self._history: deque[RunMetrics] = deque(maxlen=max_history)
        self._last_analysis_id: str | None = None

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def record_transition(
        self,
        analysis_id: str,
        agent: str,
        status: EventStatus,
        wave: int,
        attempt: int = 1,
        error: str | None = None,
        timestamp: datetime | None = None,
    ) -> ExecutionEvent:
        """Append a timestamped transition event."""
        event = ExecutionEvent(
            analysis_id=analysis_id,
            agent=agent,
            status=status,
            wave=wave,
            attempt=attempt,
            error=error,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._events.setdefault(analysis_id, []).append(event)
        self._last_analysis_id = analysis_id
        self._prune_unfinished()
        return event

    @property
    def events(self) -> list[ExecutionEvent]:
        """Retained events of every tracked run, oldest first."""
        merged = [e for events in self._events.values() for e in events]
        return sorted(merged, key=lambda e: e.timestamp)

    def events_for(self, analysis_id: str) -> list[ExecutionEvent]:
        return list(self._events.get(analysis_id, []))

    # ------------------------------------------------------------------
    # Per-run statistics
    # ------------------------------------------------------------------

    def stats(self, analysis_id: str | None = None) -> RunStats:
        """Counts, average duration and parallelism ratio for one run.

        Defaults to the run that reported most recently.
        """
        run_id = analysis_id or self._last_analysis_id
        if run_id is None:
            return RunStats(analysis_id="")

        events = self.events_for(run_id)
        started: dict[str, datetime] = {}
        finished: dict[str, ExecutionEvent] = {}
        for event in events:
            if event.status == "running":
                started.setdefault(event.agent, event.timestamp)
            else:
                finished[event.agent] = event

        durations = [
            (finished[name].timestamp - started[name]).total_seconds()
            for name in finished
            if name in started and finished[name].status in _RAN_STATUSES
        ]
        if started:
            end = max((e.timestamp for e in finished.values()), default=max(started.values()))
            wall = (end - min(started.values())).total_seconds()
        else:
            wall = 0.0

        def _count(status: str) -> int:
            return sum(1 for e in finished.values() if e.status == status)

        return RunStats(
            analysis_id=run_id,
            total_agents=len(finished),
            success_count=_count("success"),
            failure_count=_count("failed"),
            timeout_count=_count("timed_out"),
            skipped_count=_count("skipped"),
            avg_duration_s=sum(durations) / len(durations) if durations else 0.0,
            wall_clock_s=wall,
            parallelism_ratio=parallelism_ratio(durations, wall),
        )

    def record_run(self, batch: BatchExecutionResult) -> RunMetrics:
        """Store the metrics of a finished batch in the history."""
        timings = {r.agent_name: r.duration_s for r in batch.results if r.status in _RAN_STATUSES}
        sequential = sum(timings.values())
        speedup = (
            (sequential - batch.duration_s) / sequential * 100.0 if sequential > 0 else 0.0
        )
        metrics = RunMetrics(
            analysis_id=batch.state.analysis_id,
            total_time_s=batch.duration_s,
            parallelism_ratio=batch.parallelism_ratio,
            speedup_pct=speedup,
            success_count=len(batch.succeeded),
            failure_count=len(batch.failed),
            timeout_count=len(batch.timed_out),
            skipped_count=len(batch.skipped),
            execution_order=batch.execution_order,
            agent_timings_s=timings,
            wave_count=len(batch.stages),
            parallelism_by_wave={i: len(stage) for i, stage in enumerate(batch.stages)},
        )
        self._history.append(metrics)
        self._finished.add(metrics.analysis_id)
        self._prune_finished()
        return metrics

    def _prune_finished(self) -> None:
        """Drop events of finished runs whose metrics left the history."""
        kept = {m.analysis_id for m in self._history}
        for run_id in [r for r in self._finished if r not in kept]:
            self._events.pop(run_id, None)
            self._finished.discard(run_id)

    def _prune_unfinished(self) -> None:
        """Forget the oldest runs that never reported completion."""
        unfinished = [r for r in self._events if r not in self._finished]
        for run_id in unfinished[: max(0, len(unfinished) - self._max_unfinished)]:
            logger.debug("Dropping events of unfinished run %s", run_id)
            del self._events[run_id]

    # ------------------------------------------------------------------
    # Cross-run view
    # ------------------------------------------------------------------

    def latest_metrics(self) -> RunMetrics | None:
        return self._history[-1] if self._history else None

    @property
    def history(self) -> list[RunMetrics]:
        return list(self._history)

    def summary(self) -> MonitorSummary:
        if not self._history:
            return MonitorSummary()

        runs = len(self._history)
        ran = sum(m.success_count + m.failure_count + m.timeout_count for m in self._history)
        succeeded = sum(m.success_count for m in self._history)
        return MonitorSummary(
            total_runs=runs,
            avg_time_s=sum(m.total_time_s for m in self._history) / runs,
            avg_parallelism_ratio=sum(m.parallelism_ratio for m in self._history) / runs,
            avg_speedup_pct=sum(m.speedup_pct for m in self._history) / runs,
            success_rate_pct=(succeeded / ran * 100.0) if ran else 0.0,
        )

    def generate_report(self) -> str:
        """Markdown performance report for the history and latest run."""
        if not self._history:
            return "No performance metrics recorded yet."

        summary = self.summary()
        latest = self._history[-1]
        lines = [
            "# DAG Executor Performance Report",
            "",
            "## Summary",
            "",
            f"- **Runs**: {summary.total_runs}",
            f"- **Average wall clock**: {summary.avg_time_s:.2f}s",
            f"- **Average parallelism**: {summary.avg_parallelism_ratio:.2f}x",
            f"- **Average speedup**: {summary.avg_speedup_pct:.1f}%",
            f"- **Agent success rate**: {summary.success_rate_pct:.1f}%",
            "",
            f"## Latest run ({latest.analysis_id})",
            "",
            f"- **Wall clock**: {latest.total_time_s:.2f}s",
            f"- **Parallelism**: {latest.parallelism_ratio:.2f}x",
            f"- **Outcomes**: {latest.success_count} success, {latest.failure_count} failed, "
            f"{latest.timeout_count} timed out, {latest.skipped_count} skipped",
            f"- **Order**: {' -> '.join(latest.execution_order)}",
            "",
            "| Agent | Time (s) |",
            "|-------|----------|",
        ]
        lines.extend(f"| {name} | {t:.3f} |" for name, t in latest.agent_timings_s.items())
        lines.append("")
        lines.append(f"Waves: {latest.wave_count}")
        lines.extend(
            f"- Wave {wave}: {count} agents" for wave, count in latest.parallelism_by_wave.items()
        )
        return "\n".join(lines)

    def clear(self) -> None:
        self._events.clear()
        self._finished.clear()
        self._history.clear()
        self._last_analysis_id = None
