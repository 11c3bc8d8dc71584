# src/pipeline/registry.py - v2
"""Agent registry: registration, lookup and validation of analysis agents.

A registry is built and validated once at service startup and then passed
explicitly to the executor. Validation rejects unknown dependencies and
dependency cycles; an unvalidated registry is refused by the executor.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from dealscope.config.agents import AGENT_REGISTRY
from dealscope.pipeline.dag_builder import find_cycle
from dealscope.pipeline.errors import (
    CyclicDependencyError,
    DuplicateAgentError,
    RegistryError,
    UnknownDependencyError,
)
from dealscope.pipeline.plugin_kit.base_agent import BaseAgent

if TYPE_CHECKING:
    from dealscope.config.settings import Settings

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Registry of analysis agents keyed by name."""

    def __init__(self) -> None:
        self._agents: dict[str, BaseAgent] = {}
        self._validated = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, agent: BaseAgent) -> None:
        """Add an agent.

        Raises:
            DuplicateAgentError: If an agent with the same name exists.
        """
        if agent.name in self._agents:
            raise DuplicateAgentError(agent.name)
        self._agents[agent.name] = agent
        self._validated = False
        logger.debug("Registered agent: %s v%s", agent.name, agent.version)

    def register_all(self, agents: Iterable[BaseAgent]) -> None:
        for agent in agents:
            self.register(agent)

    def unregister(self, name: str) -> bool:
        """Remove an agent. Returns False if it was not registered."""
        removed = self._agents.pop(name, None) is not None
        if removed:
            self._validated = False
            logger.debug("Unregistered agent: %s", name)
        return removed

    def load_all(self, disabled: set[str] | None = None) -> None:
        """Load all built-in agents from AGENT_REGISTRY config.

        Args:
            disabled: Set of agent names to skip loading.

        Raises:
            RegistryError: If a class path cannot be imported.
            DuplicateAgentError: If an agent is already registered.
        """
        disabled = disabled or set()
        skipped = 0
        for class_path in AGENT_REGISTRY:
            agent = _import_agent(class_path)
            if agent.name in disabled:
                logger.info("Skipping disabled agent: %s", agent.name)
                skipped += 1
                continue
            self.register(agent)

        logger.info(
            "Registry loaded %d agents (%d disabled)", len(self._agents), skipped
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def agent_names(self) -> list[str]:
        """Return sorted list of registered agent names."""
        return sorted(self._agents)

    @property
    def size(self) -> int:
        return len(self._agents)

    @property
    def validated(self) -> bool:
        """True once validate() succeeded and nothing changed since."""
        return self._validated

    def has(self, name: str) -> bool:
        return name in self._agents

    def get(self, name: str) -> BaseAgent | None:
        """Get agent by name, or None if not registered."""
        return self._agents.get(name)

    def get_or_raise(self, name: str) -> BaseAgent:
        """Get agent by name, raise if not found."""
        agent = self._agents.get(name)
        if agent is None:
            raise RegistryError(f"Agent '{name}' not found in registry")
        return agent

    def get_all(self) -> list[BaseAgent]:
        """All registered agents, in name order."""
        return [self._agents[name] for name in self.agent_names]

    def get_dependency_map(self) -> dict[str, list[str]]:
        """Return agent_name -> list of dependency names."""
        return {name: list(agent.dependencies) for name, agent in self._agents.items()}

    def get_priorities(self) -> dict[str, int]:
        return {name: agent.priority for name, agent in self._agents.items()}

    def get_reverse_dependencies(self, name: str) -> list[str]:
        """Names of agents that depend directly on ``name``."""
        return sorted(
            other for other, agent in self._agents.items() if name in agent.dependencies
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Check that every dependency exists and the graph is acyclic.

        Raises:
            UnknownDependencyError: If an agent depends on an unregistered name.
            CyclicDependencyError: If the dependency graph contains a cycle.
        """
        self._validated = False
        for name in self.agent_names:
            for dep in self._agents[name].dependencies:
                if dep not in self._agents:
                    raise UnknownDependencyError(name, dep)

        cycle = find_cycle(self.get_dependency_map())
        if cycle is not None:
            raise CyclicDependencyError(cycle)

        self._validated = True
        logger.info("Registry validated: %d agents", len(self._agents))

    def ensure_validated(self) -> None:
        """Run validate() unless the current contents already passed it."""
        if not self._validated:
            self.validate()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def to_mermaid(self) -> str:
        """Mermaid flowchart of the dependency graph."""
        lines = ["graph TD"]
        for name in self.agent_names:
            agent = self._agents[name]
            lines.append(f'  {name}["{name} (P{agent.priority})"]')
            for dep in agent.dependencies:
                lines.append(f"  {dep} --> {name}")
        return "\n".join(lines)

    def summary(self) -> str:
        lines = [f"Registered agents: {len(self._agents)}"]
        for agent in sorted(self._agents.values(), key=lambda a: (a.priority, a.name)):
            deps = ", ".join(agent.dependencies) or "none"
            lines.append(f"  - {agent.name} (priority: {agent.priority}, deps: {deps})")
        return "\n".join(lines)


def build_default_registry(settings: Settings | None = None) -> AgentRegistry:
    """Load, register and validate the built-in agents.

    Args:
        settings: Used for ``disabled_agents``. Defaults apply if None.

    Raises:
        RegistryError: If loading or validation fails.
    """
    disabled = set(settings.disabled_agents_list) if settings is not None else set()
    registry = AgentRegistry()
    registry.load_all(disabled=disabled)
    registry.validate()
    return registry


def _import_agent(class_path: str) -> BaseAgent:
    """Import and instantiate an agent from a dotted class path.

    Args:
        class_path: e.g. 'dealscope.pipeline.agents.context.ContextAgent'

    Returns:
        Instantiated BaseAgent subclass.
    """
    parts = class_path.rsplit(".", 1)
    if len(parts) != 2:
        raise RegistryError(f"Invalid class path: {class_path}")
    module_path, class_name = parts

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise RegistryError(f"Cannot import module {module_path}: {exc}") from exc

    cls = getattr(module, class_name, None)
    if cls is None:
        raise RegistryError(f"Class {class_name} not found in {module_path}")

    if not isinstance(cls, type) or not issubclass(cls, BaseAgent):
        raise RegistryError(f"{class_path} is not a BaseAgent subclass")

    return cls()
