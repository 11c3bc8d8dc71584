# src/pipeline/orchestrator.py - v2
"""Analysis orchestrator: the in-process entry point for one conversation.

Wires settings, the validated agent registry, the execution plan, the LLM
factory and the performance monitor together. Registry validation happens in
the constructor, so an orchestrator that exists can accept work.

    orchestrator = AnalysisOrchestrator(settings)
    batch = await orchestrator.execute(segments, metadata)
    result = await orchestrator.analyze(segments, metadata)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from dealscope.config.settings import Settings, load_settings
from dealscope.core.models import ContextMetadata, TranscriptSegment
from dealscope.llm.retry import RetryPolicy
from dealscope.logging.context import clear_context
from dealscope.pipeline.aggregator import AnalysisResult, aggregate
from dealscope.pipeline.dag_builder import ExecutionPlan, build_dag
from dealscope.pipeline.dag_executor import BatchExecutionResult, DAGExecutor
from dealscope.pipeline.llm_factory import LLMFactory
from dealscope.pipeline.registry import AgentRegistry, build_default_registry
from dealscope.pipeline.state import AnalysisState
from dealscope.tracking.performance_monitor import PerformanceMonitor

if TYPE_CHECKING:
    from dealscope.pipeline.dag_executor import LLMFactoryLike

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """Run the agent DAG over a transcript and aggregate the outcome.

    Args:
        settings: Application settings. Loaded from the environment if None.
        registry: Agent registry. The built-in agents are loaded if None.
        llm_factory: Callable(agent_name) -> client, or one shared client.
            Defaults to an LLMFactory routing per settings.
        monitor: PerformanceMonitor shared across runs. Created if None.

    Raises:
        RegistryError: If the registry fails validation.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        registry: AgentRegistry | None = None,
        llm_factory: LLMFactoryLike = None,
        monitor: PerformanceMonitor | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        if registry is None:
            registry = build_default_registry(self._settings)
        self._registry = registry
        self._registry.ensure_validated()

        self._plan = build_dag(
            self._registry.get_dependency_map(), self._registry.get_priorities()
        )
        self._monitor = monitor if monitor is not None else PerformanceMonitor()
        self._executor = DAGExecutor(
            self._registry,
            plan=self._plan,
            llm_factory=llm_factory if llm_factory is not None else LLMFactory(self._settings),
            monitor=self._monitor,
            agent_timeout_s=self._settings.agent_timeout_s,
            retry_policy=RetryPolicy(
                max_retries=self._settings.agent_max_retries,
                base_delay_s=self._settings.agent_retry_base_delay_s,
                retry_on_timeout=self._settings.agent_retry_on_timeout,
            ),
            min_quality=self._settings.min_output_quality,
            max_refinements=self._settings.agent_max_refinements,
        )
        logger.info(
            "Orchestrator ready: %d agents in %d waves", self._plan.total_agents, len(self._plan.stages)
        )

    @property
    def plan(self) -> ExecutionPlan:
        return self._plan

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    @property
    def monitor(self) -> PerformanceMonitor:
        return self._monitor

    def new_state(
        self,
        transcript: Sequence[TranscriptSegment | Mapping[str, Any]],
        metadata: ContextMetadata | Mapping[str, Any],
    ) -> AnalysisState:
        """Build a fresh AnalysisState from raw or typed inputs."""
        segments = [
            seg if isinstance(seg, TranscriptSegment) else TranscriptSegment.model_validate(seg)
            for seg in transcript
        ]
        if not isinstance(metadata, ContextMetadata):
            raw = dict(metadata)
            raw.setdefault("product_line", self._settings.default_product_line)
            metadata = ContextMetadata.model_validate(raw)
        return AnalysisState(transcript=segments, metadata=metadata)

    async def execute(
        self,
        transcript: Sequence[TranscriptSegment | Mapping[str, Any]],
        metadata: ContextMetadata | Mapping[str, Any],
    ) -> BatchExecutionResult:
        """Run every agent; never raises for agent failures."""
        state = self.new_state(transcript, metadata)
        logger.info(
            "Starting analysis %s for lead %s (%d segments)",
            state.analysis_id,
            state.metadata.lead_id,
            len(state.transcript),
        )
        try:
            return await self._executor.execute(state)
        finally:
            clear_context()

    async def analyze(
        self,
        transcript: Sequence[TranscriptSegment | Mapping[str, Any]],
        metadata: ContextMetadata | Mapping[str, Any],
    ) -> AnalysisResult:
        """Execute and aggregate.

        Raises:
            AnalysisFailedError: If no first-wave agent succeeded.
        """
        batch = await self.execute(transcript, metadata)
        return aggregate(batch, self._plan, self._settings.competitor_keywords_list)
