"""Main quote pipeline orchestrator."""

import asyncio
import logging
from typing import Protocol

from quote_intel.config.constants import (
    REVIEW_REASON_GATE_FAILURE,
    GateAction,
    PipelineStep,
    QuoteStatus,
)
from quote_intel.config.policy import QualityGatePolicy, TriagePolicy
from quote_intel.config.settings import Settings, get_settings
from quote_intel.infrastructure.logging.logger import StructuredLogger, setup_logging
from quote_intel.orchestrator.state import QuoteRequest, QuoteState
from quote_intel.orchestrator.step_timer import timed_step
from quote_intel.services.fusion.merge import (
    apply_clarification_answers,
    apply_description_overrides,
    merge_form_answers,
)
from quote_intel.services.fusion.models import FusedSignals, StructuredSignals
from quote_intel.services.fusion.recorder import initialize_fusion_from_structured_signals
from quote_intel.services.quality_gate.evaluator import QualityGateEvaluator
from quote_intel.services.quality_gate.models import (
    PricingResult,
    QualityGateInput,
    QualityGateResult,
)
from quote_intel.services.quality_gate.phrasers import (
    ModelClient,
    ModelQuestionPhraser,
    QuestionPhraser,
    TemplateQuestionPhraser,
)
from quote_intel.services.triage.classifier import TriageClassifier
from quote_intel.services.triage.history import QuoteHistoryLookup, query_previous_quote_count
from quote_intel.services.triage.models import TriageDecision, TriageInput

logger = logging.getLogger(__name__)


class SignalExtractor(Protocol):
    """Vision/text extraction collaborator."""

    async def extract(
        self, request: QuoteRequest, photo_ids: list[str], decision: TriageDecision
    ) -> StructuredSignals: ...


class PricingEngine(Protocol):
    """Pricing-rules collaborator."""

    async def price(
        self, request: QuoteRequest, signals: StructuredSignals, fused: FusedSignals
    ) -> PricingResult: ...


class QuotePipeline:
    """Orchestrates triage, extraction, fusion, pricing and the quality gate for one quote."""

    def __init__(
        self,
        settings: Settings,
        extractor: SignalExtractor | None,
        pricer: PricingEngine,
        history_lookup: QuoteHistoryLookup | None = None,
        model_client: ModelClient | None = None,
    ):
        """Initialize pipeline with settings and collaborators."""
        self.settings = settings
        self.extractor = extractor
        self.pricer = pricer
        self.history_lookup = history_lookup
        self.triage = TriageClassifier(TriagePolicy.from_settings(settings))

        gate_policy = QualityGatePolicy.from_settings(settings)
        phraser: QuestionPhraser = TemplateQuestionPhraser()
        if model_client is not None and settings.use_llm_clarification:
            phraser = ModelQuestionPhraser(
                model_client,
                timeout=settings.clarification_timeout,
                max_options=gate_policy.max_question_options,
            )
        self.quality_gate = QualityGateEvaluator(gate_policy, phraser)
        self.fallback_gate = QualityGateEvaluator(gate_policy, TemplateQuestionPhraser())
        self.structured_logger = StructuredLogger(__name__)

    async def process(self, request: QuoteRequest, state: QuoteState | None = None) -> QuoteState:
        """
        Process a quote request end to end.

        Args:
            request: Customer request and tenant config
            state: Existing state when re-processing after clarification

        Returns:
            Updated QuoteState with the final status for this round
        """
        state = state or QuoteState(quote_id=request.quote_id)
        state.status = QuoteStatus.PROCESSING

        try:
            decision = await self._step_triage(state, request)
            structured = await self._step_extraction(state, request, decision)
            structured, fused = await self._step_fusion(state, request, structured)
            pricing = await self._step_pricing(state, request, structured, fused)
        except Exception as e:
            state.status = QuoteStatus.FAILED
            self.structured_logger.log_error("process", e, context=state.summary())
            raise

        result = await self._step_quality_gate(state, request, structured, fused, pricing)
        self._apply_gate_result(state, result)
        return state

    async def _step_triage(self, state: QuoteState, request: QuoteRequest) -> TriageDecision:
        """Execute triage step."""
        async with timed_step(PipelineStep.TRIAGE, self.structured_logger) as step:
            previous_quote_count = await query_previous_quote_count(
                self.history_lookup,
                request.customer_email,
                request.tenant_id,
                timeout=self.settings.history_lookup_timeout,
            )
            decision = self.triage.classify(
                TriageInput(
                    photo_count=len(request.photo_ids),
                    description=request.description,
                    customer_email=request.customer_email,
                    tenant_id=request.tenant_id,
                    tenant_service_count=request.tenant_service_count,
                    has_other_services=request.has_other_services,
                    ai_signal_work_step_count=request.ai_signal_work_step_count,
                ),
                previous_quote_count,
            )
            state.triage = decision
            step.set_result(decision.to_dict())
        return decision

    async def _step_extraction(
        self, state: QuoteState, request: QuoteRequest, decision: TriageDecision
    ) -> StructuredSignals:
        """Execute extraction step within the triage photo budget."""
        async with timed_step(PipelineStep.EXTRACTION, self.structured_logger) as step:
            strategy = decision.photo_strategy
            photo_ids = [] if strategy.skip_vision else request.photo_ids[: strategy.max_photos]
            if self.extractor is None:
                structured = StructuredSignals()
            else:
                structured = await self.extractor.extract(request, photo_ids, decision)
            step.set_result(
                {
                    "photos_analyzed": len(photo_ids),
                    "signals": len(structured.signals),
                    "overall_confidence": structured.overall_confidence,
                }
            )
        return structured

    async def _step_fusion(
        self, state: QuoteState, request: QuoteRequest, structured: StructuredSignals
    ) -> tuple[StructuredSignals, FusedSignals]:
        """Execute fusion step: vision baseline, form answers, clarification replies, description."""
        threshold = self.settings.form_merge_low_confidence
        async with timed_step(PipelineStep.FUSION, self.structured_logger) as step:
            recorder = initialize_fusion_from_structured_signals(structured)
            structured = merge_form_answers(
                recorder,
                structured,
                request.form_answers,
                request.widget_fields,
                request.expected_signals,
                low_confidence_threshold=threshold,
            )
            if state.clarification_answers:
                structured = apply_clarification_answers(
                    recorder, structured, state.clarification_answers, threshold
                )
            structured = apply_description_overrides(
                recorder, structured, request.description, threshold
            )
            fused = recorder.finalize()

            state.structured_signals = structured
            state.fused_signals = fused
            step.set_result(
                {
                    "signals": len(fused.signals),
                    "conflicts": [c.to_dict() for c in fused.conflicts],
                    "low_confidence_signals": structured.low_confidence_signals,
                }
            )
        return structured, fused

    async def _step_pricing(
        self,
        state: QuoteState,
        request: QuoteRequest,
        structured: StructuredSignals,
        fused: FusedSignals,
    ) -> PricingResult:
        """Execute pricing step."""
        async with timed_step(PipelineStep.PRICING, self.structured_logger) as step:
            pricing = await self.pricer.price(request, structured, fused)
            state.pricing = pricing
            step.set_result({"total": pricing.total, "lines": len(pricing.breakdown)})
        return pricing

    async def _step_quality_gate(
        self,
        state: QuoteState,
        request: QuoteRequest,
        structured: StructuredSignals,
        fused: FusedSignals,
        pricing: PricingResult,
    ) -> QualityGateResult:
        """Execute quality gate step.

        A slow gate falls back to template questions; an unexpected error
        holds the quote for review instead of sending it. A cancelled gate
        still leaves the quote with a template decision before re-raising.
        """
        async with timed_step(PipelineStep.QUALITY_GATE, self.structured_logger) as step:
            gate_input = QualityGateInput(
                structured_signals=structured,
                fusion_result=fused,
                pricing=pricing,
                clarification_count=state.clarification_count,
                service_name=request.service_name,
                has_photos=len(request.photo_ids) > 0,
            )
            try:
                result = await asyncio.wait_for(
                    self.quality_gate.evaluate(gate_input),
                    timeout=self.settings.quality_gate_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Quality gate timed out after %.1fs, using template questions",
                    self.settings.quality_gate_timeout,
                )
                result = self.fallback_gate.evaluate_with_template(gate_input)
            except asyncio.CancelledError:
                logger.warning("Quality gate cancelled for quote %s, using template questions", state.quote_id)
                self._apply_gate_result(state, self.fallback_gate.evaluate_with_template(gate_input))
                raise
            except Exception as e:
                self.structured_logger.log_error(
                    PipelineStep.QUALITY_GATE.value, e, context={"quote_id": state.quote_id}
                )
                result = QualityGateResult(
                    action=GateAction.REQUIRE_REVIEW, reason=REVIEW_REASON_GATE_FAILURE
                )
            step.set_result(result.to_dict())
        return result

    def _apply_gate_result(self, state: QuoteState, result: QualityGateResult) -> None:
        """Move the quote to the status implied by the gate decision."""
        state.gate_result = result
        if result.action == GateAction.ASK_CLARIFICATION:
            state.clarification_questions = list(result.questions)
            state.status = QuoteStatus.AWAITING_CLARIFICATION
        elif result.action == GateAction.REQUIRE_REVIEW:
            state.review_reason = result.reason
            state.status = QuoteStatus.PENDING_REVIEW
        else:
            state.status = QuoteStatus.SENT
        logger.info("Quote %s: %s -> %s", state.quote_id, result.action.value, state.status.value)


def build_pipeline(
    extractor: SignalExtractor | None,
    pricer: PricingEngine,
    history_lookup: QuoteHistoryLookup | None = None,
    settings: Settings | None = None,
    configure_logging: bool = True,
) -> QuotePipeline:
    """Wire a pipeline, using the agent-backed phraser when a model provider is configured.

    Also sets up JSON logging at ``settings.log_level`` unless the host
    application configures logging itself.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level)

    model_client: ModelClient | None = None
    if settings.use_llm_clarification and (
        settings.azure_ai_project_endpoint or settings.anthropic_api_key
    ):
        from quote_intel.infrastructure.llm import AgentModelClient

        model_client = AgentModelClient(settings)
    else:
        logger.info("No model provider configured, clarification questions use templates")
    return QuotePipeline(settings, extractor, pricer, history_lookup, model_client)
