# src/pipeline/errors.py - v1
"""Orchestrator error taxonomy.

Registration errors (duplicate, unknown dependency, cycle) are raised and
must stop the service from accepting work. Agent errors describe a contained
per-agent failure and end up in AgentExecutionResult. AnalysisFailedError is
raised by the aggregator when no usable output exists.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for every error raised by the orchestrator."""


# --- Registration time ---


class RegistryError(OrchestratorError):
    """Raised when agent loading, lookup or validation fails."""


class DuplicateAgentError(RegistryError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Agent '{name}' is already registered")


class UnknownDependencyError(RegistryError):
    def __init__(self, agent: str, dependency: str) -> None:
        self.agent = agent
        self.dependency = dependency
        super().__init__(
            f"Agent '{agent}' depends on '{dependency}' which is not registered"
        )


class CyclicDependencyError(RegistryError):
    """Dependency graph contains a cycle.

    ``cycle`` lists the member agents in traversal order, without repeating
    the first member at the end.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join([*self.cycle, self.cycle[0]]) if self.cycle else "?"
        super().__init__(f"Cyclic dependency detected: {path}")

    @property
    def members(self) -> set[str]:
        return set(self.cycle)


# --- Per agent (recorded, not raised out of the executor) ---


class AgentError(OrchestratorError):
    """Base for failures attributed to a single agent."""

    def __init__(self, agent: str, message: str) -> None:
        self.agent = agent
        super().__init__(f"[{agent}] {message}")


class AgentTimeoutError(AgentError):
    def __init__(self, agent: str, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        super().__init__(agent, f"timed out after {timeout_s:.1f}s")


class AgentExecutionError(AgentError):
    """Wraps the underlying capability failure (provider error, bad JSON...)."""

    def __init__(
        self, agent: str, message: str, cause: BaseException | None = None
    ) -> None:
        self.cause = cause
        super().__init__(agent, message)


# --- Run level ---


class AnalysisFailedError(OrchestratorError):
    """No usable output exists: every first-wave agent failed."""

    def __init__(self, failed_agents: list[str]) -> None:
        self.failed_agents = list(failed_agents)
        super().__init__(
            "Analysis produced no usable output; first wave failed: "
            + ", ".join(self.failed_agents)
        )
