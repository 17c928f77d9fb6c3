"""Quality gate evaluator.

Evaluates a priced quote and decides:

- send: quote is good, proceed to the customer
- ask_clarification: low-confidence or text-resolved signals need customer input
- require_review: critical issue, flag for the business owner

At most one clarification round is allowed per quote.
"""

import logging

from quote_intel.config.constants import GateAction, SignalSource
from quote_intel.config.policy import DEFAULT_QUALITY_GATE_POLICY, QualityGatePolicy
from quote_intel.services.fusion.models import SignalConflict, StructuredSignals
from quote_intel.services.quality_gate.models import (
    ClarificationCandidate,
    ClarificationQuestion,
    QualityGateInput,
    QualityGateResult,
)
from quote_intel.services.quality_gate.phrasers import (
    ModelClient,
    ModelQuestionPhraser,
    QuestionPhraser,
    TemplateQuestionPhraser,
)

logger = logging.getLogger(__name__)


def _pct(confidence: float) -> str:
    return f"{confidence * 100:.0f}%"


def check_for_critical_issues(
    gate_input: QualityGateInput,
    policy: QualityGatePolicy = DEFAULT_QUALITY_GATE_POLICY,
) -> str | None:
    """Return a review reason for the first critical issue found, else None."""
    confidence = gate_input.structured_signals.overall_confidence
    pricing = gate_input.pricing

    if confidence < policy.very_low_overall_confidence and gate_input.has_photos:
        return (
            f"very low overall confidence ({_pct(confidence)}) — "
            "AI could not extract reliable signals from photos"
        )

    # Zero total with work steps configured means pricing likely failed
    if pricing.total <= 0 and len(pricing.breakdown) > 0:
        return (
            "pricing computed non-positive despite configured work steps — "
            "likely a configuration issue"
        )

    if (
        gate_input.structured_signals.site_visit_recommended
        and confidence < policy.site_visit_confidence
    ):
        return (
            f"site visit recommended with low confidence ({_pct(confidence)}) — "
            "manual review needed"
        )

    return None


def identify_signals_for_clarification(
    structured_signals: StructuredSignals,
    conflicts: tuple[SignalConflict, ...] | list[SignalConflict],
    policy: QualityGatePolicy = DEFAULT_QUALITY_GATE_POLICY,
) -> list[ClarificationCandidate]:
    """Low-confidence signals first, then conflicts not settled by the form."""
    candidates: list[ClarificationCandidate] = []
    seen: set[str] = set()

    for key in structured_signals.low_confidence_signals:
        signal = structured_signals.get_signal(key)
        if signal is None or key in seen:
            continue
        if signal.confidence < policy.low_signal_confidence:
            seen.add(key)
            candidates.append(
                ClarificationCandidate(
                    key=key,
                    reason=f'Low confidence ({_pct(signal.confidence)}) for "{key}", value: {signal.value}',
                )
            )

    for conflict in conflicts:
        # Form is authoritative, nothing to ask
        if conflict.resolved_source == SignalSource.FORM:
            continue
        if conflict.key in seen:
            continue
        seen.add(conflict.key)
        candidates.append(
            ClarificationCandidate(
                key=conflict.key,
                reason=(
                    f'Conflicting sources: vision="{conflict.vision_value}", '
                    f'resolved by "{conflict.resolved_source.value}"'
                ),
            )
        )

    return candidates


class QualityGateEvaluator:
    """Decides whether a priced quote is sent, clarified or escalated."""

    def __init__(
        self,
        policy: QualityGatePolicy | None = None,
        phraser: QuestionPhraser | None = None,
    ):
        """Initialize quality gate evaluator."""
        self.policy = policy or DEFAULT_QUALITY_GATE_POLICY
        self.phraser = phraser or TemplateQuestionPhraser()
        self._template = TemplateQuestionPhraser()

    def _screen(
        self, gate_input: QualityGateInput
    ) -> tuple[QualityGateResult | None, list[ClarificationCandidate]]:
        """Return a final result, or the candidates that still need questions."""
        policy = self.policy

        # Loop breaker
        if gate_input.clarification_count >= policy.max_clarification_rounds:
            logger.info(
                "QualityGate: skipping, already had %d clarification round(s)",
                gate_input.clarification_count,
            )
            return QualityGateResult(action=GateAction.SEND), []

        review_reason = check_for_critical_issues(gate_input, policy)
        if review_reason:
            logger.info(f"QualityGate: flagged for review: {review_reason}")
            return QualityGateResult(action=GateAction.REQUIRE_REVIEW, reason=review_reason), []

        conflicts = gate_input.fusion_result.conflicts if gate_input.fusion_result else ()
        candidates = identify_signals_for_clarification(
            gate_input.structured_signals, conflicts, policy
        )
        if not candidates:
            return QualityGateResult(action=GateAction.SEND), []

        return None, candidates[: policy.max_clarification_questions]

    def _ask(self, questions: list[ClarificationQuestion]) -> QualityGateResult:
        questions = questions[: self.policy.max_clarification_questions]
        if not questions:
            # Never block the customer on missing questions
            return QualityGateResult(action=GateAction.SEND)

        logger.info(f"QualityGate: requesting clarification: {len(questions)} question(s)")
        return QualityGateResult(action=GateAction.ASK_CLARIFICATION, questions=questions)

    async def evaluate(self, gate_input: QualityGateInput) -> QualityGateResult:
        """
        Evaluate quote quality and decide the next action.

        Args:
            gate_input: Fused signals, pricing and clarification history

        Returns:
            QualityGateResult with action, and reason or questions
        """
        result, selected = self._screen(gate_input)
        if result is not None:
            return result

        try:
            questions = await self.phraser.phrase(selected, gate_input.service_name)
        except Exception as e:
            logger.error(f"QualityGate: question phrasing failed: {e}", exc_info=True)
            questions = []
        if not questions:
            questions = self._template.phrase_sync(selected, gate_input.service_name)
        return self._ask(questions)

    def evaluate_with_template(self, gate_input: QualityGateInput) -> QualityGateResult:
        """Same decision as ``evaluate`` with template questions, without awaiting anything."""
        result, selected = self._screen(gate_input)
        if result is not None:
            return result
        return self._ask(self._template.phrase_sync(selected, gate_input.service_name))


async def evaluate_quality_gate(
    gate_input: QualityGateInput,
    model_client: ModelClient | None = None,
    policy: QualityGatePolicy | None = None,
    timeout: float = 15.0,
) -> QualityGateResult:
    """Evaluate with a model-backed phraser when a client is available."""
    policy = policy or DEFAULT_QUALITY_GATE_POLICY
    phraser: QuestionPhraser
    if model_client is not None:
        phraser = ModelQuestionPhraser(
            model_client, timeout=timeout, max_options=policy.max_question_options
        )
    else:
        phraser = TemplateQuestionPhraser()
    return await QualityGateEvaluator(policy, phraser).evaluate(gate_input)
