"""Quality gate: send, clarify or escalate a priced quote."""

from quote_intel.services.quality_gate.evaluator import (
    QualityGateEvaluator,
    check_for_critical_issues,
    evaluate_quality_gate,
    identify_signals_for_clarification,
)
from quote_intel.services.quality_gate.phrasers import (
    ModelQuestionPhraser,
    TemplateQuestionPhraser,
)

__all__ = [
    "ModelQuestionPhraser",
    "QualityGateEvaluator",
    "TemplateQuestionPhraser",
    "check_for_critical_issues",
    "evaluate_quality_gate",
    "identify_signals_for_clarification",
]
