"""Signal fusion models."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from quote_intel.config.constants import SignalSource

SignalValue = bool | int | float | str


class ExtractedSignal(BaseModel):
    """A single attribute extracted about the job (vision, form, text or inferred)."""

    key: str
    value: SignalValue
    confidence: float = Field(ge=0.0, le=1.0)
    source: Literal["vision", "form", "text", "inferred", "nlp"] = "vision"
    evidence: Optional[str] = None


class StructuredSignals(BaseModel):
    """Structured signals for one quote, as produced by extraction."""

    signals: list[ExtractedSignal] = Field(default_factory=list)
    overall_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    low_confidence_signals: list[str] = Field(default_factory=list)
    site_visit_recommended: bool = False
    site_visit_reason: Optional[str] = None
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_signal(self, key: str) -> ExtractedSignal | None:
        """Return the signal with *key*, if any."""
        for signal in self.signals:
            if signal.key == key:
                return signal
        return None


class WidgetField(BaseModel):
    """Form field definition from the tenant's widget config."""

    field_id: str
    label: str = ""
    type: str = "text"
    maps_to_signal: Optional[str] = None


class FormAnswer(BaseModel):
    """A customer's answer to one widget field."""

    field_id: str
    value: SignalValue | list[str] | None = None


class ClarificationAnswer(BaseModel):
    """A customer's reply to one clarification question."""

    question_id: str
    target_signal_key: str
    value: SignalValue | list[str]


class ExpectedSignal(BaseModel):
    """Signal the service expects, with its declared type."""

    signal_key: str
    type: str = "string"  # number | boolean | enum | string
    possible_values: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class SignalProvenance:
    """The current value of a signal and which source owns it."""

    key: str
    value: SignalValue
    confidence: float
    source: SignalSource
    evidence: str | None = None
    override_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        return data


@dataclass(frozen=True)
class SignalConflict:
    """Two sources disagreed about a signal and fusion picked one."""

    key: str
    form_value: SignalValue | None
    vision_value: SignalValue | None
    resolved_source: SignalSource
    resolution: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["resolved_source"] = self.resolved_source.value
        return data


@dataclass(frozen=True)
class FusedSignals:
    """Immutable fusion snapshot persisted for audit and fed to the quality gate."""

    signals: tuple[SignalProvenance, ...] = field(default_factory=tuple)
    conflicts: tuple[SignalConflict, ...] = field(default_factory=tuple)

    def get(self, key: str) -> SignalProvenance | None:
        for signal in self.signals:
            if signal.key == key:
                return signal
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signals": [s.to_dict() for s in self.signals],
            "conflicts": [c.to_dict() for c in self.conflicts],
        }
