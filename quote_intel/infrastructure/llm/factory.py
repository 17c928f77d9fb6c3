"""Agent factory for the clarification model.

Claude models run on Anthropic, every other model name is treated as an
Azure AI Foundry deployment.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from agent_framework.anthropic import AnthropicClient
from agent_framework_azure_ai import AzureAIAgentClient
from azure.identity.aio import DefaultAzureCredential

from quote_intel.config.settings import Settings

logger = logging.getLogger(__name__)

_shared_credential: DefaultAzureCredential | None = None


def get_shared_credential() -> DefaultAzureCredential:
    """Return the process-wide Azure credential, creating it on first use."""
    global _shared_credential
    if _shared_credential is None:
        _shared_credential = DefaultAzureCredential()
    return _shared_credential


async def close_shared_credential() -> None:
    """Close the shared credential on shutdown."""
    global _shared_credential
    if _shared_credential is not None:
        await _shared_credential.close()
        _shared_credential = None


def is_anthropic_model(model: str) -> bool:
    return "claude" in model.lower()


def _agent_options(settings: Settings, name: str, instructions: str) -> dict[str, Any]:
    return {
        "name": name,
        "instructions": instructions,
        "max_tokens": settings.clarification_max_tokens,
        "temperature": settings.clarification_temperature,
    }


@asynccontextmanager
async def clarification_agent(
    settings: Settings,
    name: str,
    instructions: str,
    model: str | None = None,
) -> AsyncIterator[Any]:
    """
    Build a tool-less agent for one clarification request.

    Azure clients hold a connection and are closed on exit; Anthropic agents
    need no cleanup.

    Args:
        settings: Application settings (endpoint, API key, sampling options)
        name: Agent name, shows up in framework logs
        instructions: System prompt
        model: Model or deployment name (defaults to settings.clarification_agent_model)
    """
    final_model = model or settings.clarification_agent_model
    options = _agent_options(settings, name, instructions)

    if is_anthropic_model(final_model):
        logger.debug(f"Creating Anthropic agent '{name}' with model: {final_model}")
        client = AnthropicClient(model_id=final_model, api_key=settings.anthropic_api_key)
        yield client.create_agent(**options)
        return

    logger.debug(f"Creating Azure AI agent '{name}' with deployment: {final_model}")
    async with AzureAIAgentClient(
        project_endpoint=settings.azure_ai_project_endpoint,
        model_deployment_name=final_model,
        async_credential=get_shared_credential(),
    ) as client:
        # No tools, so a single model turn is enough
        if client.function_invocation_configuration is not None:
            client.function_invocation_configuration.max_iterations = 1
        yield client.create_agent(**options)
