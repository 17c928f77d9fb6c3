"""Tests for the quote pipeline orchestrator."""

import asyncio

import pytest
from helpers import FakeModelClient, low_confidence_signals, make_pricing, make_signals

from quote_intel.config.constants import (
    REVIEW_REASON_GATE_FAILURE,
    GateAction,
    QuoteStatus,
    SignalSource,
    TriageClassification,
)
from quote_intel.config.settings import Settings
from quote_intel.infrastructure.llm import AgentModelClient
from quote_intel.orchestrator import pipeline as pipeline_module
from quote_intel.orchestrator.clarification import submit_clarification_answers
from quote_intel.orchestrator.pipeline import QuotePipeline, build_pipeline
from quote_intel.orchestrator.state import QuoteRequest, QuoteState
from quote_intel.services.fusion.models import ExtractedSignal, FormAnswer, StructuredSignals
from quote_intel.services.quality_gate.phrasers import ModelQuestionPhraser, TemplateQuestionPhraser


class FakeExtractor:
    def __init__(self, structured: StructuredSignals | None = None, error: Exception | None = None):
        self.structured = structured or make_signals()
        self.error = error
        self.calls: list[list[str]] = []

    async def extract(self, request, photo_ids, decision):
        self.calls.append(list(photo_ids))
        if self.error:
            raise self.error
        return self.structured


class FakePricer:
    def __init__(self, total: float = 300):
        self.total = total
        self.seen = []

    async def price(self, request, signals, fused):
        self.seen.append(fused)
        return make_pricing(total=self.total)


class _SlowGate:
    async def evaluate(self, gate_input):
        await asyncio.sleep(1.0)


class _BrokenGate:
    async def evaluate(self, gate_input):
        raise RuntimeError("gate exploded")


def _request(**overrides) -> QuoteRequest:
    data = {
        "quote_id": "q-1",
        "tenant_id": "tenant-1",
        "customer_email": "customer@example.com",
        "service_name": "Window Cleaning",
        "description": "Clean all windows",
    }
    data.update(overrides)
    return QuoteRequest(**data)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_healthy_quote_is_sent(settings):
    pricer = FakePricer()
    pipeline = QuotePipeline(settings, FakeExtractor(), pricer)
    state = await pipeline.process(_request())

    assert state.status == QuoteStatus.SENT
    assert state.triage.classification == TriageClassification.SIMPLE
    assert state.gate_result.action == GateAction.SEND
    assert state.pricing.total == 300
    assert pricer.seen[0] is state.fused_signals


@pytest.mark.asyncio
async def test_extractor_gets_photo_budget(settings):
    extractor = FakeExtractor()
    pipeline = QuotePipeline(settings, extractor, FakePricer())
    photo_ids = [f"p{i}" for i in range(10)]
    state = await pipeline.process(_request(photo_ids=photo_ids))

    assert state.triage.classification == TriageClassification.COMPLEX
    assert extractor.calls == [photo_ids[:5]]


@pytest.mark.asyncio
async def test_without_extractor_uses_form_only(settings):
    pipeline = QuotePipeline(settings, None, FakePricer())
    state = await pipeline.process(
        _request(form_answers=[FormAnswer(field_id="window_count", value="12")])
    )

    assert state.status == QuoteStatus.SENT
    assert state.fused_signals.get("window_count").value == 12


@pytest.mark.asyncio
async def test_form_and_description_fused(settings):
    extractor = FakeExtractor(
        make_signals(
            signals=[
                ExtractedSignal(key="item_count", value=5, confidence=0.8),
                ExtractedSignal(key="access_difficulty", value="difficult", confidence=0.9),
            ]
        )
    )
    pipeline = QuotePipeline(settings, extractor, FakePricer())
    state = await pipeline.process(
        _request(
            description="Ground floor windows only",
            form_answers=[FormAnswer(field_id="item_count", value="3")],
        )
    )

    fused = state.fused_signals
    assert fused.get("item_count").source == SignalSource.FORM
    assert fused.get("access_difficulty").source == SignalSource.TEXT
    assert [c.resolved_source for c in fused.conflicts] == [SignalSource.FORM, SignalSource.TEXT]
    # Text-resolved conflict is worth asking about
    assert state.status == QuoteStatus.AWAITING_CLARIFICATION
    assert state.clarification_questions[0].target_signal_key == "access_difficulty"


# ---------------------------------------------------------------------------
# Clarification round trip
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_clarification_round_trip(settings):
    extractor = FakeExtractor(low_confidence_signals("item_count"))
    pipeline = QuotePipeline(settings, extractor, FakePricer())

    state = await pipeline.process(_request())
    assert state.status == QuoteStatus.AWAITING_CLARIFICATION
    question = state.clarification_questions[0]
    assert question.target_signal_key == "item_count"

    submit_clarification_answers(state, {question.id: "4"})
    assert state.status == QuoteStatus.QUEUED

    state = await pipeline.process(_request(), state)
    assert state.status == QuoteStatus.SENT
    signal = state.fused_signals.get("item_count")
    assert signal.value == 4
    assert signal.source == SignalSource.FORM
    assert state.structured_signals.low_confidence_signals == []


# ---------------------------------------------------------------------------
# Review and failures
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_very_low_confidence_goes_to_review(settings):
    extractor = FakeExtractor(make_signals(overall_confidence=0.1))
    pipeline = QuotePipeline(settings, extractor, FakePricer())
    state = await pipeline.process(_request(photo_ids=["p1"]))

    assert state.status == QuoteStatus.PENDING_REVIEW
    assert state.review_reason.startswith("very low overall confidence")


@pytest.mark.asyncio
async def test_gate_error_holds_quote_for_review(settings):
    pipeline = QuotePipeline(settings, FakeExtractor(), FakePricer())
    pipeline.quality_gate = _BrokenGate()
    state = await pipeline.process(_request())

    assert state.status == QuoteStatus.PENDING_REVIEW
    assert state.review_reason == REVIEW_REASON_GATE_FAILURE


@pytest.mark.asyncio
async def test_gate_timeout_uses_template_questions():
    settings = Settings(quality_gate_timeout=0.01)
    pipeline = QuotePipeline(settings, FakeExtractor(low_confidence_signals("item_count")), FakePricer())
    pipeline.quality_gate = _SlowGate()
    state = await pipeline.process(_request())

    assert state.status == QuoteStatus.AWAITING_CLARIFICATION
    assert state.clarification_questions[0].question.startswith("Could you provide more details")


@pytest.mark.asyncio
async def test_cancelled_gate_leaves_template_decision(settings):
    client = FakeModelClient(response={"questions": []}, delay=5.0)
    pipeline = QuotePipeline(
        settings, FakeExtractor(low_confidence_signals("item_count")), FakePricer(), model_client=client
    )
    state = QuoteState(quote_id="q-1")
    task = asyncio.create_task(pipeline.process(_request(), state))
    while not client.calls:
        await asyncio.sleep(0.01)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert state.status == QuoteStatus.AWAITING_CLARIFICATION
    assert state.gate_result.action == GateAction.ASK_CLARIFICATION
    assert state.clarification_questions[0].question.startswith("Could you provide more details")


@pytest.mark.asyncio
async def test_extraction_failure_marks_quote_failed(settings):
    state = QuoteState(quote_id="q-1")
    pipeline = QuotePipeline(settings, FakeExtractor(error=RuntimeError("vision down")), FakePricer())
    with pytest.raises(RuntimeError, match="vision down"):
        await pipeline.process(_request(), state)
    assert state.status == QuoteStatus.FAILED
    assert state.triage is not None


def test_build_pipeline_without_provider_uses_templates():
    settings = Settings(azure_ai_project_endpoint="", anthropic_api_key=None)
    pipeline = build_pipeline(None, FakePricer(), settings=settings, configure_logging=False)
    assert isinstance(pipeline.quality_gate.phraser, TemplateQuestionPhraser)


def test_build_pipeline_with_provider_uses_model(monkeypatch):
    monkeypatch.setenv("AZURE_AI_PROJECT_ENDPOINT", "https://example.services.ai.azure.com/api/projects/quotes")
    pipeline = build_pipeline(None, FakePricer(), settings=Settings(), configure_logging=False)
    assert isinstance(pipeline.quality_gate.phraser, ModelQuestionPhraser)
    assert isinstance(pipeline.quality_gate.phraser.model_client, AgentModelClient)


def test_build_pipeline_configures_logging(monkeypatch):
    levels = []
    monkeypatch.setattr(pipeline_module, "setup_logging", levels.append)
    build_pipeline(None, FakePricer(), settings=Settings(log_level="debug", azure_ai_project_endpoint=""))
    assert levels == ["DEBUG"]


def test_build_pipeline_can_leave_logging_alone(monkeypatch):
    levels = []
    monkeypatch.setattr(pipeline_module, "setup_logging", levels.append)
    build_pipeline(None, FakePricer(), settings=Settings(azure_ai_project_endpoint=""), configure_logging=False)
    assert levels == []
