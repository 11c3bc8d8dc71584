# src/api/facade.py - v2
"""Public API facade - single entry point for conversation analysis.

Usage:
    from dealscope.api.facade import analyze
    result = await analyze(transcript, metadata)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from dealscope.pipeline.orchestrator import AnalysisOrchestrator

if TYPE_CHECKING:
    from dealscope.api.models import AnalysisRequest
    from dealscope.config.settings import Settings
    from dealscope.core.models import ContextMetadata, TranscriptSegment
    from dealscope.pipeline.aggregator import AnalysisResult
    from dealscope.pipeline.dag_executor import LLMFactoryLike
    from dealscope.pipeline.registry import AgentRegistry

logger = logging.getLogger(__name__)


async def analyze(
    transcript: Sequence[TranscriptSegment | Mapping[str, Any]],
    metadata: ContextMetadata | Mapping[str, Any],
    settings: Settings | None = None,
    llm_factory: LLMFactoryLike = None,
    registry: AgentRegistry | None = None,
) -> AnalysisResult:
    """Analyze one sales conversation end-to-end.

    Builds a one-shot AnalysisOrchestrator. Services handling many requests
    should hold their own orchestrator instead, so registry validation and
    LLM client creation happen once.

    Args:
        transcript: Ordered speaker-tagged segments (models or dicts).
        metadata: Lead/opportunity identifiers and product line.
        settings: Global settings. Loaded from .env if None.
        llm_factory: Callable(agent_name) -> client, or one shared client.
        registry: Custom agent registry. Built-in agents if None.

    Returns:
        AnalysisResult, possibly partial.

    Raises:
        RegistryError: If the agent registry fails validation.
        AnalysisFailedError: If no first-wave agent succeeded.
    """
    orchestrator = AnalysisOrchestrator(
        settings=settings, registry=registry, llm_factory=llm_factory
    )
    return await orchestrator.analyze(transcript, metadata)


async def analyze_request(
    request: AnalysisRequest,
    settings: Settings | None = None,
    llm_factory: LLMFactoryLike = None,
) -> AnalysisResult:
    """Analyze a validated AnalysisRequest."""
    return await analyze(
        request.transcript, request.metadata, settings=settings, llm_factory=llm_factory
    )
