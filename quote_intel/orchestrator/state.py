"""Quote processing state."""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field

from quote_intel.config.constants import QuoteStatus
from quote_intel.services.fusion.models import (
    ClarificationAnswer,
    ExpectedSignal,
    FormAnswer,
    FusedSignals,
    StructuredSignals,
    WidgetField,
)
from quote_intel.services.quality_gate.models import (
    ClarificationQuestion,
    PricingResult,
    QualityGateResult,
)
from quote_intel.services.triage.models import TriageDecision


class QuoteRequest(BaseModel):
    """A customer's quote request plus the tenant config needed to process it."""

    quote_id: str
    tenant_id: str
    customer_email: str = ""
    service_name: str = ""
    description: str = ""
    photo_ids: list[str] = Field(default_factory=list)
    form_answers: list[FormAnswer] = Field(default_factory=list)
    widget_fields: list[WidgetField] = Field(default_factory=list)
    expected_signals: list[ExpectedSignal] = Field(default_factory=list)
    tenant_service_count: int = 1
    has_other_services: bool = False
    ai_signal_work_step_count: int = 0


@dataclass
class QuoteState:
    """State of one quote across processing rounds."""

    quote_id: str
    status: QuoteStatus = QuoteStatus.QUEUED

    # Clarification round
    clarification_count: int = 0
    clarification_questions: list[ClarificationQuestion] = field(default_factory=list)
    clarification_answers: list[ClarificationAnswer] = field(default_factory=list)

    # Step 1: Triage
    triage: Optional[TriageDecision] = None

    # Step 2-3: Extraction and fusion
    structured_signals: Optional[StructuredSignals] = None
    fused_signals: Optional[FusedSignals] = None

    # Step 4: Pricing
    pricing: Optional[PricingResult] = None

    # Step 5: Quality gate
    gate_result: Optional[QualityGateResult] = None
    review_reason: Optional[str] = None

    def summary(self) -> dict[str, Any]:
        """Compact view for step logs."""
        return {
            "quote_id": self.quote_id,
            "status": self.status.value,
            "clarification_count": self.clarification_count,
            "classification": self.triage.classification.value if self.triage else None,
            "signals": len(self.fused_signals.signals) if self.fused_signals else 0,
            "conflicts": len(self.fused_signals.conflicts) if self.fused_signals else 0,
            "total": self.pricing.total if self.pricing else None,
            "action": self.gate_result.action.value if self.gate_result else None,
        }
