# tests/unit/pipeline/test_unit_orchestrator.py - v2
"""Tests for pipeline/orchestrator.py - AnalysisOrchestrator wiring."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from dealscope.config.settings import Settings
from dealscope.llm.models import LLMResponse
from dealscope.pipeline.errors import AnalysisFailedError, UnknownDependencyError
from dealscope.pipeline.orchestrator import AnalysisOrchestrator
from dealscope.pipeline.registry import AgentRegistry
from dealscope.tracking.performance_monitor import PerformanceMonitor


def _routing_llm(payloads: dict[str, dict], fail: set[str] | None = None):
    """llm_factory returning one AsyncMock client per agent name."""
    import json

    fail = fail or set()

    def factory(agent_name: str) -> AsyncMock:
        client = AsyncMock()
        if agent_name in fail:
            client.complete = AsyncMock(side_effect=RuntimeError("provider exploded"))
        else:
            client.complete = AsyncMock(
                return_value=LLMResponse(
                    content=json.dumps(payloads[agent_name]),
                    input_tokens=10, output_tokens=5,
                    model="mock-model", provider="mock", latency_ms=1,
                )
            )
        return client

    return factory


class TestAnalysisOrchestrator:
    def test_builds_default_plan(self):
        orch = AnalysisOrchestrator(settings=Settings(), llm_factory=lambda n: None)
        assert orch.plan.stages == [
            ["context"], ["buyer", "seller"], ["summary", "crm"], ["coach"],
        ]
        assert orch.registry.validated
        assert isinstance(orch.monitor, PerformanceMonitor)

    def test_invalid_registry_fails_at_construction(self):
        reg = AgentRegistry()
        reg.load_all(disabled={"context"})
        with pytest.raises(UnknownDependencyError):
            AnalysisOrchestrator(settings=Settings(), registry=reg)

    def test_new_state_from_dicts(self):
        orch = AnalysisOrchestrator(
            settings=Settings(default_product_line="salon"), llm_factory=lambda n: None
        )
        state = orch.new_state(
            [{"speaker": "Rep", "text": "hi", "start_seconds": 0, "end_seconds": 1}],
            {"lead_id": "L-9"},
        )
        assert state.metadata.product_line == "salon"
        assert state.transcript[0].text == "hi"

    @pytest.mark.asyncio
    async def test_analyze_complete(self, sample_segments, sample_metadata, agent_payloads):
        orch = AnalysisOrchestrator(settings=Settings(), llm_factory=_routing_llm(agent_payloads))
        result = await orch.analyze(sample_segments, sample_metadata)
        assert result.status == "complete"
        assert result.sections["seller"]["progress_score"] == 62
        assert any(r.risk == "Competitor mentioned: POS" for r in result.risks)
        assert orch.monitor.summary().total_runs == 1

    @pytest.mark.asyncio
    async def test_execute_partial(self, sample_segments, sample_metadata, agent_payloads):
        orch = AnalysisOrchestrator(
            settings=Settings(), llm_factory=_routing_llm(agent_payloads, fail={"crm"})
        )
        batch = await orch.execute(sample_segments, sample_metadata)
        assert batch.failed == ["crm"]
        assert batch.skipped == ["coach"]
        assert batch.results_by_agent["crm"].error_type == "AgentExecutionError"

    @pytest.mark.asyncio
    async def test_empty_transcript_fails_analysis(self, sample_metadata, agent_payloads):
        orch = AnalysisOrchestrator(settings=Settings(), llm_factory=_routing_llm(agent_payloads))
        with pytest.raises(AnalysisFailedError):
            await orch.analyze([], sample_metadata)
