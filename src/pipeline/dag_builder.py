# src/pipeline/dag_builder.py - v2
"""DAG builder: partition agents into execution waves.

Produces a topologically layered execution plan. Wave 0 holds every agent
without dependencies; wave k holds every agent whose dependencies all sit in
waves 0..k-1. Detects cycles and names their members.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import networkx as nx

from dealscope.pipeline.errors import CyclicDependencyError, UnknownDependencyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered execution plan for analysis agents.

    stages is a list of waves: agents within the same wave can run
    concurrently (no mutual dependencies). Waves execute sequentially.
    """

    stages: list[list[str]] = field(default_factory=list)
    total_agents: int = 0

    @property
    def flat_order(self) -> list[str]:
        """Return a flat topological ordering (no concurrency info)."""
        return [agent for stage in self.stages for agent in stage]

    @property
    def max_parallelism(self) -> int:
        return max((len(stage) for stage in self.stages), default=0)

    def stage_index(self, agent: str) -> int:
        """Wave number of an agent.

        Raises:
            KeyError: If the agent is not part of the plan.
        """
        for idx, stage in enumerate(self.stages):
            if agent in stage:
                return idx
        raise KeyError(agent)


def find_cycle(dependency_map: Mapping[str, Sequence[str]]) -> list[str] | None:
    """Return the members of one dependency cycle, or None if acyclic."""
    graph = nx.DiGraph()
    graph.add_nodes_from(dependency_map)
    for agent, deps in dependency_map.items():
        for dep in deps:
            graph.add_edge(dep, agent)
    try:
        edges = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return None
    return [u for u, _v, *_ in edges]


def build_dag(
    dependency_map: Mapping[str, Sequence[str]],
    priorities: Mapping[str, int] | None = None,
) -> ExecutionPlan:
    """Build an execution DAG from agent dependency declarations.

    Uses Kahn's algorithm with level detection. Pure: the same input always
    yields the same partition. Within a wave agents are ordered by priority,
    then name.

    Args:
        dependency_map: agent_name -> list of dependency agent names.
        priorities: Optional agent_name -> priority (lower first).

    Returns:
        ExecutionPlan with staged execution order.

    Raises:
        UnknownDependencyError: If a dependency is not in the map.
        CyclicDependencyError: If a cycle is detected.
    """
    if not dependency_map:
        return ExecutionPlan()

    prio = priorities or {}

    def _order(names: list[str]) -> list[str]:
        return sorted(names, key=lambda n: (prio.get(n, 0), n))

    all_agents = set(dependency_map)
    for agent in sorted(all_agents):
        for dep in dependency_map[agent]:
            if dep not in all_agents:
                raise UnknownDependencyError(agent, dep)

    # Duplicate edges count once
    in_degree: dict[str, int] = {a: 0 for a in all_agents}
    dependents: dict[str, list[str]] = {a: [] for a in all_agents}
    for agent, deps in dependency_map.items():
        for dep in set(deps):
            dependents[dep].append(agent)
            in_degree[agent] += 1

    stages: list[list[str]] = []
    queue = _order([a for a, d in in_degree.items() if d == 0])
    processed = 0

    while queue:
        stages.append(queue)
        next_queue: list[str] = []
        for agent in queue:
            processed += 1
            for dependent in dependents[agent]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_queue.append(dependent)
        queue = _order(next_queue)

    if processed != len(all_agents):
        remaining = {a: list(dependency_map[a]) for a in all_agents if in_degree[a] > 0}
        cycle = find_cycle(remaining) or sorted(remaining)
        raise CyclicDependencyError(cycle)

    plan = ExecutionPlan(stages=stages, total_agents=processed)
    logger.info(
        "DAG built: %d agents in %d waves: %s",
        plan.total_agents,
        len(plan.stages),
        " | ".join(", ".join(stage) for stage in plan.stages),
    )
    return plan
