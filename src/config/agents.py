# src/config/agents.py - v2
"""Declarative agent registry configuration.

Lists the built-in agents participating in the analysis DAG and the groups
used for per-group LLM routing.
"""

from __future__ import annotations

# Fully qualified class paths for dynamic import by pipeline/registry.py.
AGENT_REGISTRY: list[str] = [
    "dealscope.pipeline.agents.context.ContextAgent",
    "dealscope.pipeline.agents.buyer.BuyerAgent",
    "dealscope.pipeline.agents.seller.SellerAgent",
    "dealscope.pipeline.agents.summary.SummaryAgent",
    "dealscope.pipeline.agents.crm.CRMAgent",
    "dealscope.pipeline.agents.coach.CoachAgent",
]

# Group-to-agent mapping for LLM routing (see llm/config.py).
AGENT_GROUP_MAP: dict[str, list[str]] = {
    "extraction": ["context", "crm"],
    "scoring": ["buyer", "seller"],
    "synthesis": ["summary", "coach"],
}
