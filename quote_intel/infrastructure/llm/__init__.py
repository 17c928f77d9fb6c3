"""LLM infrastructure module.

Only the model client is exported here; the agent_framework factory and
executor are imported lazily by it.
"""

from quote_intel.infrastructure.llm.client import AgentModelClient

__all__ = [
    "AgentModelClient",
]
