# tests/unit/pipeline/test_unit_state.py - v2
"""Tests for pipeline/state.py - AnalysisState."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dealscope.pipeline.plugin_kit.models import AgentMetadata, AgentOutput
from dealscope.pipeline.state import AnalysisState


def _output(name: str, tokens: int = 100) -> AgentOutput:
    return AgentOutput(
        data={"from": name},
        confidence=0.8,
        metadata=AgentMetadata(
            agent_name=name, agent_version="1.0.0", execution_time_ms=5,
            llm_calls=1, tokens_used=tokens,
        ),
    )


class TestAnalysisState:
    def test_defaults(self, sample_metadata):
        state = AnalysisState(metadata=sample_metadata)
        assert state.analysis_id
        assert state.transcript == []
        assert state.agent_outputs == {}
        assert state.errors == []

    def test_unique_ids(self, sample_metadata):
        assert AnalysisState(metadata=sample_metadata).analysis_id != AnalysisState(
            metadata=sample_metadata
        ).analysis_id

    def test_metadata_required(self):
        with pytest.raises(ValidationError):
            AnalysisState()

    def test_input_is_frozen(self, sample_state, sample_metadata):
        with pytest.raises(ValidationError):
            sample_state.transcript = []
        with pytest.raises(ValidationError):
            sample_state.metadata = sample_metadata

    def test_record_agent_output_updates_totals(self, sample_state):
        sample_state.record_agent_output("context", _output("context", 120))
        sample_state.record_agent_output("buyer", _output("buyer", 80))
        assert sample_state.total_llm_calls == 2
        assert sample_state.total_tokens_used == 200
        assert sample_state.has_output("buyer")
        assert sample_state.data_of("context") == {"from": "context"}

    def test_data_of_missing(self, sample_state):
        with pytest.raises(KeyError, match="seller"):
            sample_state.data_of("seller")

    def test_transcript_text(self, sample_state):
        lines = sample_state.transcript_text().splitlines()
        assert len(lines) == 4
        assert lines[0].startswith("[00:00] Rep:")
        assert lines[3].startswith("[00:13] Customer:")

    def test_competitor_mentions_case_insensitive(self, sample_state):
        found = sample_state.competitor_mentions(["pos", "Another System", "salesforce", ""])
        assert found == ["pos", "Another System"]

    def test_snapshot_is_independent(self, sample_state):
        sample_state.record_agent_output("context", _output("context"))
        snap = sample_state.snapshot()
        snap.agent_outputs["context"].data["from"] = "mutated"
        snap.record_agent_output("buyer", _output("buyer"))
        assert sample_state.data_of("context") == {"from": "context"}
        assert not sample_state.has_output("buyer")
        assert snap.analysis_id == sample_state.analysis_id
