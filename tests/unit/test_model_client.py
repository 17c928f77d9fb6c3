"""Tests for the agent-backed model client (LLM stack mocked)."""

from contextlib import asynccontextmanager

import pytest

from quote_intel.config.prompts import CLARIFICATION_QUESTIONS_SCHEMA
from quote_intel.infrastructure.llm import client as client_module
from quote_intel.infrastructure.llm.client import AgentModelClient, _LLMDeps


def _deps(answer: dict):
    built = []
    runs = []

    @asynccontextmanager
    async def clarification_agent(settings, name, instructions, model=None):
        built.append({"name": name, "instructions": instructions, "model": model})
        yield f"agent:{model}"

    async def run_agent_for_json(agent, prompt):
        runs.append((agent, prompt))
        return answer

    return _LLMDeps(clarification_agent=clarification_agent, run_agent_for_json=run_agent_for_json), built, runs


@pytest.mark.asyncio
async def test_generate_with_schema(monkeypatch, settings):
    deps, built, runs = _deps({"questions": []})
    monkeypatch.setattr(client_module, "_lazy_imports", lambda: deps)

    model_client = AgentModelClient(settings, model="claude-sonnet")
    result = await model_client.generate_with_schema("prompt", CLARIFICATION_QUESTIONS_SCHEMA, "Be nice.")

    assert result == {"questions": []}
    assert runs == [("agent:claude-sonnet", "prompt")]
    assert built[0]["instructions"].startswith("Be nice.")
    assert "targetSignalKey" in built[0]["instructions"]


@pytest.mark.asyncio
async def test_default_model_from_settings(monkeypatch, settings):
    deps, built, _ = _deps({"questions": []})
    monkeypatch.setattr(client_module, "_lazy_imports", lambda: deps)

    await AgentModelClient(settings).generate_with_schema("prompt", {})
    assert built[0]["model"] == settings.clarification_agent_model


@pytest.mark.asyncio
async def test_no_json_raises(monkeypatch, settings):
    deps, _, _ = _deps({})
    monkeypatch.setattr(client_module, "_lazy_imports", lambda: deps)

    with pytest.raises(ValueError, match="no JSON"):
        await AgentModelClient(settings).generate_with_schema("prompt", {})
