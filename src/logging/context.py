# src/logging/context.py - v2
"""Contextual logging support: attach analysis_id, agent and wave to records.

Each agent runs in its own asyncio task, and tasks copy the current context
on creation, so agent tags set inside a task never leak into siblings.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_analysis_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "analysis_id", default=None
)
_lead_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "lead_id", default=None
)
_agent: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "agent", default=None
)
_wave: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "wave", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    analysis_id: str | None = None
    lead_id: str | None = None
    agent: str | None = None
    wave: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        analysis_id=_analysis_id.get(),
        lead_id=_lead_id.get(),
        agent=_agent.get(),
        wave=_wave.get(),
    )


def set_analysis_context(analysis_id: str, lead_id: str | None = None) -> None:
    """Set run-level context (called once per analysis run)."""
    _analysis_id.set(analysis_id)
    _lead_id.set(lead_id)


def set_agent_context(agent: str, wave: int | None = None) -> None:
    """Set agent-level context (called inside each agent task)."""
    _agent.set(agent)
    _wave.set(wave)


def clear_context() -> None:
    """Reset all context variables."""
    _analysis_id.set(None)
    _lead_id.set(None)
    _agent.set(None)
    _wave.set(None)
