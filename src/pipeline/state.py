# src/pipeline/state.py - v2
"""Analysis state threaded through the agent DAG.

The input section (transcript, metadata) is frozen. The output section grows
as agents complete; only the executor writes to it, and only at wave
boundaries. One instance per analysis request, never shared.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from dealscope.core.models import ContextMetadata, TranscriptSegment, format_transcript
from dealscope.pipeline.plugin_kit.models import AgentOutput


class AnalysisState(BaseModel):
    """Mutable accumulator of transcript input and per-agent outputs."""

    # === IDENTITY ===
    analysis_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # === INPUT (immutable) ===
    transcript: list[TranscriptSegment] = Field(default_factory=list, frozen=True)
    metadata: ContextMetadata = Field(frozen=True)

    # === AGENT OUTPUTS ===
    agent_outputs: dict[str, AgentOutput] = Field(default_factory=dict)

    # === STATS ===
    total_llm_calls: int = 0
    total_tokens_used: int = 0
    errors: list[str] = Field(default_factory=list)

    def record_agent_output(self, agent_name: str, output: AgentOutput) -> None:
        """Record an agent's output and update running stats."""
        self.agent_outputs[agent_name] = output
        self.total_llm_calls += output.metadata.llm_calls
        self.total_tokens_used += output.metadata.tokens_used

    def has_output(self, agent_name: str) -> bool:
        return agent_name in self.agent_outputs

    def data_of(self, agent_name: str) -> dict[str, Any]:
        """Return the data an agent produced.

        Raises:
            KeyError: If the agent has no recorded output.
        """
        output = self.agent_outputs.get(agent_name)
        if output is None:
            raise KeyError(f"No output recorded for agent '{agent_name}'")
        return output.data

    def transcript_text(self) -> str:
        return format_transcript(self.transcript)

    def competitor_mentions(self, keywords: list[str]) -> list[str]:
        """Return the keywords that appear anywhere in the transcript."""
        full_text = " ".join(seg.text for seg in self.transcript).lower()
        return [kw for kw in keywords if kw and kw.lower() in full_text]

    def snapshot(self) -> AnalysisState:
        """Deep copy handed to agents of one wave."""
        return self.model_copy(deep=True)
