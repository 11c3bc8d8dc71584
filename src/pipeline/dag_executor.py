# src/pipeline/dag_executor.py - v2
"""DAG executor: run the agent plan wave by wave.

For each wave of the ExecutionPlan:
  - agents whose dependencies did not all succeed are marked ``skipped``
    and never invoked (nor are agents that report ``is_applicable() == False``)
  - every remaining agent is launched concurrently against the same
    read-only snapshot of the state, each raced against its own timeout
  - an agent whose output scores below the quality threshold may refine it
    (up to its max_refinements) within that same timeout
  - once the whole wave has settled, successful outputs are merged into the
    shared state, which the next wave then sees

A failing agent never aborts the run; only the branch of the graph that
depends on it is skipped. Agent errors are recorded in the per-agent result
and never raised out of execute(). Registry validation errors are.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from dealscope.llm.retry import NO_RETRY, RetryPolicy
from dealscope.logging.context import set_agent_context, set_analysis_context
from dealscope.pipeline.dag_builder import ExecutionPlan, build_dag
from dealscope.pipeline.errors import (
    AgentError,
    AgentExecutionError,
    AgentTimeoutError,
    RegistryError,
)
from dealscope.pipeline.plugin_kit.models import (
    DEPENDENCY_SKIP_REASON,
    AgentExecutionResult,
    AgentOutput,
)
from dealscope.pipeline.state import AnalysisState
from dealscope.tracking.models import parallelism_ratio

if TYPE_CHECKING:
    from dealscope.llm.base_client import BaseLLMClient
    from dealscope.pipeline.plugin_kit.base_agent import BaseAgent
    from dealscope.pipeline.registry import AgentRegistry
    from dealscope.tracking.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)

DEFAULT_AGENT_TIMEOUT_S = 120.0

LLMFactoryLike = Callable[[str], "BaseLLMClient"] | Any


@dataclass
class BatchExecutionResult:
    """Result of one executor run.

    ``results`` holds one terminal record per planned agent, in plan order.
    ``state`` is the final merged state; partial if some agents did not
    succeed.
    """

    state: AnalysisState
    results: list[AgentExecutionResult] = field(default_factory=list)
    stages: list[list[str]] = field(default_factory=list)
    duration_s: float = 0.0
    parallelism_ratio: float = 1.0
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def results_by_agent(self) -> dict[str, AgentExecutionResult]:
        return {r.agent_name: r for r in self.results}

    def status_of(self, agent: str) -> str:
        return self.results_by_agent[agent].status

    def _names(self, status: str) -> list[str]:
        return [r.agent_name for r in self.results if r.status == status]

    @property
    def succeeded(self) -> list[str]:
        return self._names("success")

    @property
    def failed(self) -> list[str]:
        return self._names("failed")

    @property
    def timed_out(self) -> list[str]:
        return self._names("timed_out")

    @property
    def skipped(self) -> list[str]:
        return self._names("skipped")

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed) + len(self.timed_out)

    @property
    def execution_order(self) -> list[str]:
        return [r.agent_name for r in self.results]

    @property
    def is_complete(self) -> bool:
        return all(r.status == "success" for r in self.results)


class DAGExecutor:
    """Execute a validated agent registry against an AnalysisState.

    Args:
        registry: Validated (or validatable) AgentRegistry.
        plan: ExecutionPlan; built from the registry if None.
        llm_factory: Callable(agent_name) -> BaseLLMClient, or a single client.
        monitor: Optional PerformanceMonitor notified of every transition.
        agent_timeout_s: Per-agent timeout. Expiry cancels the agent call.
        retry_policy: Per-agent retry policy. Defaults to no retry.
        min_quality: Outputs scoring below this in validate_output() are
            refined when the agent allows it, then accepted with a warning.
        max_refinements: Upper bound on refinements for any agent; the
            agent's own max_refinements applies below it.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        plan: ExecutionPlan | None = None,
        llm_factory: LLMFactoryLike = None,
        monitor: PerformanceMonitor | None = None,
        agent_timeout_s: float = DEFAULT_AGENT_TIMEOUT_S,
        retry_policy: RetryPolicy | None = None,
        min_quality: float = 0.0,
        max_refinements: int = 0,
    ) -> None:
        if agent_timeout_s <= 0:
            raise ValueError("agent_timeout_s must be > 0")
        self._registry = registry
        self._plan = plan
        self._llm_factory = llm_factory
        self._monitor = monitor
        self._timeout_s = agent_timeout_s
        self._retry = retry_policy or NO_RETRY
        self._min_quality = min_quality
        self._max_refinements = max_refinements

        if plan is not None:
            unknown = [name for name in plan.flat_order if not registry.has(name)]
            if unknown:
                raise RegistryError(f"Plan references unregistered agents: {unknown}")

    @property
    def plan(self) -> ExecutionPlan:
        """Execution plan, built from the registry on first access."""
        if self._plan is None:
            self._registry.ensure_validated()
            self._plan = build_dag(
                self._registry.get_dependency_map(), self._registry.get_priorities()
            )
        return self._plan

    async def execute(self, state: AnalysisState) -> BatchExecutionResult:
        """Run every planned agent and merge outputs into ``state``.

        Raises:
            RegistryError: If the registry fails validation. No agent runs.
        """
        self._registry.ensure_validated()
        plan = self.plan

        set_analysis_context(state.analysis_id, state.metadata.lead_id)
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        results: list[AgentExecutionResult] = []
        statuses: dict[str, str] = {}

        for wave, stage in enumerate(plan.stages):
            snapshot = state.snapshot()
            settled: dict[str, AgentExecutionResult] = {}
            runnable: list[BaseAgent] = []

            for name in stage:
                agent = self._registry.get_or_raise(name)
                blocked = [dep for dep in agent.dependencies if statuses.get(dep) != "success"]
                if blocked:
                    settled[name] = self._skip(
                        state, name, wave, f"{DEPENDENCY_SKIP_REASON}: {', '.join(blocked)}"
                    )
                elif not self._applicable(agent, snapshot):
                    settled[name] = self._skip(state, name, wave, "not applicable")
                else:
                    runnable.append(agent)

            logger.info(
                "Wave %d/%d: running %s%s",
                wave + 1,
                len(plan.stages),
                [a.name for a in runnable],
                f", skipped {list(settled)}" if settled else "",
            )

            # Join point: the wave settles completely before any merge.
            wave_results = await asyncio.gather(
                *(self._run_agent(agent, snapshot, wave) for agent in runnable)
            )
            settled.update((r.agent_name, r) for r in wave_results)

            for name in stage:
                result = settled[name]
                statuses[name] = result.status
                results.append(result)
                if result.status == "success" and result.output is not None:
                    state.record_agent_output(name, result.output)
                elif result.error is not None:
                    state.errors.append(f"{name}: {result.error}")

        duration = time.monotonic() - start
        ratio = parallelism_ratio(
            [r.duration_s for r in results if r.status != "skipped"], duration
        )
        batch = BatchExecutionResult(
            state=state,
            results=results,
            stages=[list(stage) for stage in plan.stages],
            duration_s=duration,
            parallelism_ratio=ratio,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

        logger.info(
            "Execution complete in %.2fs: %d success, %d failed, %d timed out, "
            "%d skipped, parallelism %.2fx",
            duration,
            batch.success_count,
            len(batch.failed),
            len(batch.timed_out),
            len(batch.skipped),
            ratio,
        )
        if self._monitor is not None:
            self._observe(self._monitor.record_run, batch)
        return batch

    # ------------------------------------------------------------------
    # Single agent
    # ------------------------------------------------------------------

    async def _run_agent(
        self, agent: BaseAgent, state: AnalysisState, wave: int
    ) -> AgentExecutionResult:
        """Run one agent with timeout and optional retry. Never raises."""
        set_agent_context(agent.name, wave)
        started_at = datetime.now(timezone.utc)
        attempt = 0

        while True:
            attempt += 1
            self._notify(state.analysis_id, agent.name, "running", wave, attempt)
            logger.debug("Running agent '%s' (attempt %d)", agent.name, attempt)
            try:
                llm = self._get_llm(agent.name)
                output, refinements = await asyncio.wait_for(
                    self._produce(agent, state, llm), timeout=self._timeout_s
                )
            except asyncio.TimeoutError as exc:
                error: AgentError = AgentTimeoutError(agent.name, self._timeout_s)
                status = "timed_out"
                raw: BaseException = exc
            except Exception as exc:
                error = (
                    exc
                    if isinstance(exc, AgentExecutionError)
                    else AgentExecutionError(agent.name, str(exc) or type(exc).__name__, cause=exc)
                )
                status = "failed"
                raw = exc
            else:
                finished_at = datetime.now(timezone.utc)
                self._notify(state.analysis_id, agent.name, "success", wave, attempt)
                logger.info(
                    "Agent '%s' completed: confidence=%.2f, tokens=%d, time=%.2fs",
                    agent.name,
                    output.confidence,
                    output.metadata.tokens_used,
                    (finished_at - started_at).total_seconds(),
                )
                return AgentExecutionResult(
                    agent_name=agent.name,
                    status="success",
                    wave=wave,
                    output=output,
                    attempts=attempt,
                    refinements=refinements,
                    started_at=started_at,
                    finished_at=finished_at,
                )

            if self._retry.should_retry(raw, attempt):
                delay = self._retry.compute_delay(attempt)
                logger.warning(
                    "Agent '%s' %s (attempt %d/%d), retrying in %.1fs: %s",
                    agent.name,
                    status,
                    attempt,
                    self._retry.max_attempts,
                    delay,
                    error,
                )
                await asyncio.sleep(delay)
                continue

            logger.error("Agent '%s' %s after %d attempt(s): %s", agent.name, status, attempt, error)
            self._notify(state.analysis_id, agent.name, status, wave, attempt, str(error))
            return AgentExecutionResult(
                agent_name=agent.name,
                status=status,
                wave=wave,
                error=str(error),
                error_type=type(error).__name__,
                attempts=attempt,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
            )

    def _skip(
        self, state: AnalysisState, name: str, wave: int, reason: str
    ) -> AgentExecutionResult:
        logger.warning("Skipping agent '%s': %s", name, reason)
        self._notify(state.analysis_id, name, "skipped", wave, 0, reason)
        return AgentExecutionResult(
            agent_name=name, status="skipped", wave=wave, skip_reason=reason
        )

    def _applicable(self, agent: BaseAgent, state: AnalysisState) -> bool:
        try:
            return bool(agent.is_applicable(state))
        except Exception:
            # Treated as applicable.
            logger.exception("is_applicable() raised for agent '%s'", agent.name)
            return True

    async def _produce(
        self, agent: BaseAgent, state: AnalysisState, llm: BaseLLMClient
    ) -> tuple[AgentOutput, int]:
        """Execute, refine while below the quality threshold, then apply the gate."""
        output = await agent.execute(state, llm)
        limit = min(agent.max_refinements, self._max_refinements)
        refinements = 0
        while refinements < limit and self._below_quality(agent, output):
            refinements += 1
            logger.info(
                "Refining agent '%s' output (%d/%d)", agent.name, refinements, limit
            )
            previous = output
            output = await agent.refine(state, llm, previous)
            output.metadata.llm_calls += previous.metadata.llm_calls
            output.metadata.tokens_used += previous.metadata.tokens_used
        self._apply_quality_gate(agent, output, refinements)
        return output, refinements

    def _below_quality(self, agent: BaseAgent, output: AgentOutput) -> bool:
        return self._min_quality > 0 and agent.validate_output(output) < self._min_quality

    def _apply_quality_gate(
        self, agent: BaseAgent, output: AgentOutput, refinements: int
    ) -> None:
        if self._min_quality <= 0:
            return
        quality = agent.validate_output(output)
        if quality < self._min_quality:
            logger.warning(
                "Agent '%s' quality %.2f below threshold %.2f",
                agent.name,
                quality,
                self._min_quality,
            )
            suffix = f" after {refinements} refinement(s)" if refinements else ""
            output.warnings.append(
                f"Quality {quality:.2f} below threshold {self._min_quality:.2f}{suffix}"
            )

    def _get_llm(self, agent_name: str) -> BaseLLMClient:
        """Get LLM client for a specific agent."""
        if self._llm_factory is not None:
            if callable(self._llm_factory):
                return self._llm_factory(agent_name)
            return self._llm_factory
        raise RuntimeError(f"No LLM factory configured for agent '{agent_name}'")

    # ------------------------------------------------------------------
    # Monitor
    # ------------------------------------------------------------------

    def _notify(
        self,
        analysis_id: str,
        agent: str,
        status: str,
        wave: int,
        attempt: int,
        error: str | None = None,
    ) -> None:
        if self._monitor is None:
            return
        self._observe(
            self._monitor.record_transition,
            analysis_id,
            agent,
            status,
            wave,
            attempt=attempt,
            error=error,
        )

    @staticmethod
    def _observe(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Call a monitor hook; monitor failures never affect the run."""
        try:
            fn(*args, **kwargs)
        except Exception:
            logger.warning("Performance monitor hook failed", exc_info=True)
