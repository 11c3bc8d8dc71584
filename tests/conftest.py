# tests/conftest.py - v2
"""Shared test fixtures for all unit and integration tests.

Provides sample transcripts, metadata, analysis states, valid agent payloads
and mock LLM clients. No external dependencies - all I/O is mocked.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from dealscope.core.models import ContextMetadata, TranscriptSegment
from dealscope.llm.models import LLMResponse
from dealscope.pipeline.state import AnalysisState


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_segments() -> list[TranscriptSegment]:
    """Short rep/customer exchange."""
    return [
        TranscriptSegment(
            speaker="Rep", text="Thanks for taking the call. How is the new shop going?",
            start_seconds=0.0, end_seconds=4.5,
        ),
        TranscriptSegment(
            speaker="Customer",
            text="Busy. We open next month and our current POS keeps crashing.",
            start_seconds=4.5, end_seconds=9.0,
        ),
        TranscriptSegment(
            speaker="Rep", text="We can have you set up in a week. Who signs off on this?",
            start_seconds=9.0, end_seconds=13.2,
        ),
        TranscriptSegment(
            speaker="Customer", text="I do, but I want to compare prices with another system first.",
            start_seconds=13.2, end_seconds=18.0,
        ),
    ]


@pytest.fixture
def sample_metadata() -> ContextMetadata:
    return ContextMetadata(
        lead_id="lead-001",
        opportunity_id="opp-001",
        conversation_id="conv-001",
        sales_rep="alice",
        conversation_date=date(2026, 3, 2),
        product_line="pos",
    )


@pytest.fixture
def sample_state(
    sample_segments: list[TranscriptSegment], sample_metadata: ContextMetadata
) -> AnalysisState:
    return AnalysisState(transcript=sample_segments, metadata=sample_metadata)


# === FIXTURES: Agent payloads (valid JSON per built-in agent) ===


@pytest.fixture
def agent_payloads() -> dict[str, dict]:
    return {
        "context": {
            "decision_maker": "owner",
            "decision_maker_confirmed": True,
            "urgency_level": "high",
            "deadline_date": "2026-04-01",
            "customer_motivation": "new_location",
            "barriers": ["price comparison"],
            "meta_consistent": True,
        },
        "buyer": {
            "not_closed_reason": "price",
            "not_closed_detail": "Wants to compare with another vendor",
            "switch_concerns": {"detected": True, "worry_about": "setup", "complexity": "normal"},
            "customer_type": {"type": "analytical", "evidence": ["compare prices"]},
            "missed_opportunities": ["did not quote a trial"],
            "current_system": "competitor",
        },
        "seller": {
            "progress_score": 62,
            "has_clear_ask": False,
            "recommended_strategy": "small_step",
            "strategy_reason": "Owner engaged but price-sensitive",
            "safety_alert": False,
            "skills_diagnosis": {
                "pain_addressed": True,
                "strengths": ["fast setup pitch"],
                "improvements": ["ask for commitment"],
            },
            "next_action": {
                "action": "Send pricing comparison",
                "suggested_script": "Here is how we compare...",
                "deadline": "2026-03-05",
            },
        },
        "summary": {
            "sms_text": "Hi! Great talking about the new shop. Pricing comparison coming today.",
            "hook_point": {"customer_interest": "fast setup", "customer_quote": "We open next month"},
            "tone_used": "casual",
            "markdown": "## Meeting notes\n- New shop opens next month",
            "pain_points": ["POS crashes"],
            "solutions": ["one-week setup"],
            "key_decisions": [],
            "action_items": {"vendor": ["send pricing"], "customer": ["review pricing"]},
        },
        "crm": {
            "stage_name": "Qualification",
            "stage_confidence": "high",
            "stage_reasoning": "Owner confirmed, timeline set",
            "budget": {"range": "unknown", "mentioned": False, "decision_maker": "owner"},
            "decision_makers": [{"name": "Owner", "role": "owner", "influence": "high"}],
            "pain_points": ["POS crashes"],
            "timeline": {"decision_date": "2026-03", "urgency": "high", "notes": "opening"},
            "next_steps": ["send pricing"],
        },
        "coach": {
            "alert_triggered": True,
            "alert_type": "close_now",
            "alert_severity": "high",
            "alert_message": "Owner has a hard deadline; push for a trial.",
            "coaching_notes": "Good discovery, no closing ask.",
            "strengths": ["discovery"],
            "improvements": [{"area": "closing", "suggestion": "propose a trial date"}],
            "detected_objections": [{"type": "price", "customer_quote": "compare prices"}],
            "objection_handling": [
                {"objection_type": "price", "handled": False, "effectiveness": "none"}
            ],
            "suggested_talk_tracks": ["Offer a side-by-side cost comparison"],
            "follow_up": {"timing": "tomorrow", "method": "phone", "notes": ""},
            "manager_alert": False,
        },
    }


# === FIXTURES: Mock LLM ===


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    """Standard mock LLM response."""
    return LLMResponse(
        content='{"result": "mock"}',
        input_tokens=100,
        output_tokens=50,
        model="mock-model",
        provider="mock",
        latency_ms=200,
    )


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock LLM client that returns mock_llm_response."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value=mock_llm_response)
    client.provider_name = "mock"
    return client


def make_llm_response(payload: dict, model: str = "mock-model") -> LLMResponse:
    return LLMResponse(
        content=json.dumps(payload),
        input_tokens=120,
        output_tokens=80,
        model=model,
        provider="mock",
        latency_ms=10,
    )


@pytest.fixture
def llm_for_payload():
    """Factory: AsyncMock client whose complete() returns the given payload."""

    def _make(payload: dict) -> AsyncMock:
        client = AsyncMock()
        client.complete = AsyncMock(return_value=make_llm_response(payload))
        client.provider_name = "mock"
        return client

    return _make


# === FIXTURES: Temp directories ===


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    out = tmp_path / "output"
    out.mkdir()
    return out
