# src/api/models.py - v2
"""API-level models: AnalysisRequest.

JSON shape accepted by the CLI and by callers that hold raw payloads:

    {
      "metadata": {"lead_id": "L-1", "product_line": "pos", ...},
      "transcript": [{"speaker": "Rep", "text": "...", "start_seconds": 0, "end_seconds": 4.2}]
    }
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from dealscope.core.models import ContextMetadata, TranscriptSegment


class AnalysisRequest(BaseModel):
    """One conversation to analyze."""

    metadata: ContextMetadata
    transcript: list[TranscriptSegment] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: Path) -> AnalysisRequest:
        """Load a request from a JSON file."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
