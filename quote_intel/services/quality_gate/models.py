"""Quality gate models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from quote_intel.config.constants import GateAction
from quote_intel.services.fusion.models import FusedSignals, StructuredSignals


class PricingLineItem(BaseModel):
    """One line of a pricing breakdown."""

    label: str
    amount: float


class PricingResult(BaseModel):
    """Externally computed price; only total and breakdown are read here."""

    total: float
    breakdown: list[PricingLineItem] = Field(default_factory=list)
    currency: str = "GBP"


class QualityGateInput(BaseModel):
    """Everything the quality gate looks at."""

    structured_signals: StructuredSignals
    fusion_result: Optional[FusedSignals] = None
    pricing: PricingResult
    clarification_count: int = Field(default=0, ge=0)
    service_name: str = ""
    has_photos: bool = False


class ClarificationQuestionDraft(BaseModel):
    """A question as phrased by the model, before ids are assigned."""

    target_signal_key: str = Field(alias="targetSignalKey")
    question: str
    options: Optional[list[str]] = None

    model_config = {"populate_by_name": True}


class ClarificationQuestionSet(BaseModel):
    """Structured output expected from the model."""

    questions: list[ClarificationQuestionDraft] = Field(default_factory=list)


@dataclass(frozen=True)
class ClarificationCandidate:
    """A signal worth asking the customer about, and why."""

    key: str
    reason: str


@dataclass
class ClarificationQuestion:
    """A question sent to the customer."""

    id: str
    target_signal_key: str
    question: str
    options: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "target_signal_key": self.target_signal_key,
            "question": self.question,
        }
        if self.options:
            data["options"] = list(self.options)
        return data


@dataclass
class QualityGateResult:
    """Result from quality gate evaluation."""

    action: GateAction
    reason: str | None = None
    questions: list[ClarificationQuestion] = field(default_factory=list)
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and persistence."""
        data: dict[str, Any] = {
            "action": self.action.value,
            "evaluated_at": self.evaluated_at.isoformat(),
        }
        if self.reason:
            data["reason"] = self.reason
        if self.questions:
            data["questions"] = [q.to_dict() for q in self.questions]
        return data
