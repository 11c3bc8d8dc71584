# tests/unit/pipeline/agents/test_builtin_agents.py - v2
"""Tests for the six built-in analysis agents."""

from __future__ import annotations

import pytest

from dealscope.pipeline.agents.buyer import BuyerAgent
from dealscope.pipeline.agents.coach import CoachAgent
from dealscope.pipeline.agents.context import ContextAgent
from dealscope.pipeline.agents.crm import CRMAgent
from dealscope.pipeline.agents.seller import SellerAgent
from dealscope.pipeline.agents.summary import SMS_MAX_CHARS, SummaryAgent
from dealscope.pipeline.errors import AgentExecutionError
from dealscope.pipeline.plugin_kit.models import AgentMetadata, AgentOutput
from dealscope.pipeline.state import AnalysisState

ALL_AGENTS = [ContextAgent, BuyerAgent, SellerAgent, SummaryAgent, CRMAgent, CoachAgent]


def _seed(state: AnalysisState, payloads: dict, names: list[str]) -> None:
    for name in names:
        state.record_agent_output(
            name,
            AgentOutput(
                data=payloads[name], confidence=0.8,
                metadata=AgentMetadata(
                    agent_name=name, agent_version="1.0.0", execution_time_ms=1,
                    llm_calls=1, tokens_used=10,
                ),
            ),
        )


class TestDeclarations:
    def test_dependencies(self):
        deps = {cls().name: cls().dependencies for cls in ALL_AGENTS}
        assert deps == {
            "context": [],
            "buyer": ["context"],
            "seller": ["context"],
            "summary": ["buyer", "seller"],
            "crm": ["buyer"],
            "coach": ["summary", "crm"],
        }

    def test_priorities_unique_and_ordered(self):
        assert [cls().priority for cls in ALL_AGENTS] == [1, 2, 3, 4, 5, 6]

    @pytest.mark.parametrize("cls", ALL_AGENTS)
    def test_prompt_template_exists(self, cls):
        from pathlib import Path

        assert Path(cls().prompt_file).is_file()

    def test_produces(self):
        assert "progress_score" in SellerAgent().produces
        assert "sms_text" in SummaryAgent().produces


class TestExecution:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("cls", ALL_AGENTS)
    async def test_execute_with_valid_payload(
        self, cls, sample_state, agent_payloads, llm_for_payload
    ):
        agent = cls()
        _seed(sample_state, agent_payloads, agent.dependencies)
        llm = llm_for_payload(agent_payloads[agent.name])

        output = await agent.execute(sample_state, llm)

        assert output.metadata.agent_name == agent.name
        assert output.metadata.llm_calls == 1
        assert 0.0 < output.confidence <= 1.0
        assert set(output.data) == set(agent.produces)
        prompt = llm.complete.call_args.args[0]
        assert "Customer: Busy." in prompt
        for dep in agent.dependencies:
            assert f"### {dep}" in prompt

    @pytest.mark.asyncio
    async def test_seller_rejects_out_of_range_score(
        self, sample_state, agent_payloads, llm_for_payload
    ):
        _seed(sample_state, agent_payloads, ["context"])
        payload = dict(agent_payloads["seller"], progress_score=140)
        with pytest.raises(AgentExecutionError):
            await SellerAgent().execute(sample_state, llm_for_payload(payload))

    @pytest.mark.asyncio
    async def test_summary_prompt_carries_sms_limit(
        self, sample_state, agent_payloads, llm_for_payload
    ):
        _seed(sample_state, agent_payloads, ["buyer", "seller"])
        llm = llm_for_payload(agent_payloads["summary"])
        await SummaryAgent().execute(sample_state, llm)
        prompt = llm.complete.call_args.args[0]
        assert f"at most {SMS_MAX_CHARS} characters" in prompt


class TestApplicabilityAndQuality:
    def test_context_needs_transcript(self, sample_state, sample_metadata):
        assert ContextAgent().is_applicable(sample_state)
        assert not ContextAgent().is_applicable(AnalysisState(metadata=sample_metadata))

    def _out(self, data: dict, confidence: float = 0.8) -> AgentOutput:
        return AgentOutput(
            data=data, confidence=confidence,
            metadata=AgentMetadata(
                agent_name="x", agent_version="1", execution_time_ms=0,
                llm_calls=1, tokens_used=0,
            ),
        )

    def test_summary_quality(self):
        agent = SummaryAgent()
        assert agent.validate_output(self._out({"sms_text": "", "markdown": "x"})) == 0.0
        long_sms = "x" * (SMS_MAX_CHARS + 1)
        assert agent.validate_output(self._out({"sms_text": long_sms, "markdown": "x"})) == 0.5
        assert agent.validate_output(self._out({"sms_text": "hi", "markdown": "x"})) == 0.8

    def test_seller_quality_without_reason(self):
        assert SellerAgent().validate_output(self._out({"strategy_reason": " "})) == 0.4

    def test_context_quality_unknown_decider(self):
        assert ContextAgent().validate_output(self._out({"decision_maker": "unknown"})) == 0.5

    def test_crm_confidence_from_stage(self):
        assert CRMAgent().compute_confidence({"stage_confidence": "low"}) == 0.5

    def test_buyer_refines_up_to_twice(self):
        assert BuyerAgent().max_refinements == 2
        assert SellerAgent().max_refinements == 0

    def test_buyer_quality_without_evidence(self):
        data = {
            "not_closed_reason": "price", "not_closed_detail": "Too expensive",
            "customer_type": {"type": "cautious", "evidence": []},
        }
        assert BuyerAgent().validate_output(self._out(data, confidence=0.6)) == 0.4

    def test_buyer_quality_without_reason_detail(self):
        data = {
            "not_closed_reason": "needs_owner", "not_closed_detail": "",
            "customer_type": {"type": "cautious", "evidence": ["let me ask my wife"]},
        }
        assert BuyerAgent().validate_output(self._out(data, confidence=0.85)) == 0.4

    def test_buyer_quality_complete(self):
        data = {
            "not_closed_reason": "none",
            "customer_type": {"type": "impulsive", "evidence": ["sign me up"]},
        }
        assert BuyerAgent().validate_output(self._out(data, confidence=0.85)) == 0.85
