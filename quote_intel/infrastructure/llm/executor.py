"""
Agent execution helpers.
"""
import logging
from typing import Any

from agent_framework import SequentialBuilder, WorkflowOutputEvent

from quote_intel.utils.json_parser import JSONParser
from quote_intel.utils.retry import run_with_retry

logger = logging.getLogger(__name__)


async def _collect_text(agent: Any, input_text: str) -> str:
    workflow = SequentialBuilder().participants([agent]).build()
    chunks: list[str] = []
    async for event in workflow.run_stream(input_text):
        if isinstance(event, WorkflowOutputEvent):
            chunks.extend(msg.text for msg in event.data if getattr(msg, "text", None))
    return "".join(chunks)


async def run_agent_for_json(agent: Any, input_text: str, max_retries: int = 2) -> dict[str, Any]:
    """
    Run an agent once and return the JSON object in its answer.

    Rate limit and transient errors are retried; an answer without a JSON
    object is returned as an empty dict.
    """
    text = await run_with_retry(
        lambda: _collect_text(agent, input_text),
        max_retries=max_retries,
        initial_delay=2.0,
        backoff_factor=2.0,
    )
    if not text:
        logger.warning("run_agent_for_json: no text received from agent")
        return {}
    return JSONParser.extract_json(text)
