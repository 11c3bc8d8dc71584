# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

Transcript input and conversation context. Agents, the executor and the
aggregator all import these from core.models.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, model_validator


# === TRANSCRIPT ===


class TranscriptSegment(BaseModel):
    """Single speaker-tagged utterance with its position in the recording."""

    speaker: str = ""
    text: str
    start_seconds: float = Field(ge=0.0)
    end_seconds: float = Field(ge=0.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> TranscriptSegment:
        if self.end_seconds < self.start_seconds:
            raise ValueError(
                f"end_seconds ({self.end_seconds}) precedes start_seconds ({self.start_seconds})"
            )
        return self

    @property
    def duration_seconds(self) -> float:
        return self.end_seconds - self.start_seconds

    def format_line(self) -> str:
        """Render as '[MM:SS] Speaker: text' for prompts."""
        total = int(self.start_seconds)
        minutes, seconds = divmod(total, 60)
        speaker = self.speaker or "Speaker"
        return f"[{minutes:02d}:{seconds:02d}] {speaker}: {self.text}"


# === CONVERSATION CONTEXT ===


class ContextMetadata(BaseModel):
    """Opaque identifiers and tags passed through to every agent."""

    lead_id: str
    opportunity_id: str | None = None
    conversation_id: str | None = None
    sales_rep: str = ""
    conversation_date: date | None = None
    product_line: str = "default"
    extra: dict[str, Any] = Field(default_factory=dict)


def format_transcript(segments: list[TranscriptSegment]) -> str:
    """Join segments into a newline-separated prompt block."""
    return "\n".join(seg.format_line() for seg in segments)
