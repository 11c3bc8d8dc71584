# src/tracking/exporter.py - v3
"""Performance data export to JSON and CSV."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dealscope.pipeline.dag_executor import BatchExecutionResult
    from dealscope.tracking.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)

AGENT_CSV_FIELDS = [
    "analysis_id", "agent", "wave", "status", "attempts", "refinements", "duration_s",
    "started_at", "finished_at", "tokens_used", "error_type", "error", "skip_reason",
]


def export_metrics_json(monitor: PerformanceMonitor, path: Path) -> None:
    """Export the monitor's cross-run summary and history as formatted JSON.

    Args:
        monitor: Monitor to export.
        path: Output file path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "summary": monitor.summary().model_dump(mode="json"),
        "runs": [m.model_dump(mode="json") for m in monitor.history],
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Exported metrics for %d run(s) to %s", len(monitor.history), path)


def export_agent_results_csv(batch: BatchExecutionResult, path: Path) -> None:
    """Export one row per agent result for spreadsheet/BI analysis.

    Args:
        batch: Executor output.
        path: Output file path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    analysis_id = batch.state.analysis_id

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=AGENT_CSV_FIELDS)
        writer.writeheader()
        for result in batch.results:
            writer.writerow(
                {
                    "analysis_id": analysis_id,
                    "agent": result.agent_name,
                    "wave": result.wave,
                    "status": result.status,
                    "attempts": result.attempts,
                    "refinements": result.refinements,
                    "duration_s": f"{result.duration_s:.3f}",
                    "started_at": result.started_at.isoformat() if result.started_at else "",
                    "finished_at": result.finished_at.isoformat() if result.finished_at else "",
                    "tokens_used": result.output.metadata.tokens_used if result.output else 0,
                    "error_type": result.error_type or "",
                    "error": result.error or "",
                    "skip_reason": result.skip_reason or "",
                }
            )
