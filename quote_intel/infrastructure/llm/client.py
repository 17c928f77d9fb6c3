"""Schema-constrained model client backed by agent_framework agents.

Lazy imports keep the decision core importable without the LLM stack.
"""

import json
import logging
from typing import Any, NamedTuple

from quote_intel.config.settings import Settings

logger = logging.getLogger(__name__)


class _LLMDeps(NamedTuple):
    """Lazily-resolved LLM factory and executor functions."""

    clarification_agent: Any
    run_agent_for_json: Any


def _lazy_imports() -> _LLMDeps:
    """Return LLM factory and executor functions."""
    from quote_intel.infrastructure.llm.executor import run_agent_for_json
    from quote_intel.infrastructure.llm.factory import clarification_agent

    return _LLMDeps(
        clarification_agent=clarification_agent,
        run_agent_for_json=run_agent_for_json,
    )


def _with_schema(system_prompt: str | None, schema: dict[str, Any]) -> str:
    instructions = system_prompt or "You are a helpful assistant."
    return (
        f"{instructions}\n\n"
        "Respond ONLY with a JSON object matching this JSON schema, no prose:\n"
        f"```json\n{json.dumps(schema, indent=2)}\n```"
    )


class AgentModelClient:
    """Produces JSON matching a schema from a prompt, using one agent run."""

    def __init__(
        self,
        settings: Settings,
        name: str = "ClarificationAgent",
        model: str | None = None,
    ):
        self.settings = settings
        self.name = name
        self.model = model or settings.clarification_agent_model

    async def generate_with_schema(
        self,
        prompt: str,
        schema: dict[str, Any],
        system_prompt: str | None = None,
    ) -> dict[str, Any]:
        """
        Run the agent and parse its JSON answer.

        Raises:
            ValueError: If the response holds no JSON object
        """
        llm = _lazy_imports()
        async with llm.clarification_agent(
            self.settings,
            name=self.name,
            instructions=_with_schema(system_prompt, schema),
            model=self.model,
        ) as agent:
            result = await llm.run_agent_for_json(agent, prompt)

        if not result:
            raise ValueError(f"{self.name} returned no JSON object")
        logger.debug(f"{self.name} answered with keys: {sorted(result)}")
        return result
