"""Triage service models."""

from dataclasses import asdict, dataclass, field
from typing import Any

from pydantic import BaseModel, field_validator

from quote_intel.config.constants import TriageClassification


class TriageInput(BaseModel):
    """Shape of an incoming quote request as seen by triage."""

    photo_count: int = 0
    description: str = ""
    customer_email: str = ""
    tenant_id: str = ""
    tenant_service_count: int = 0
    has_other_services: bool = False
    ai_signal_work_step_count: int = 0

    @field_validator(
        "photo_count", "tenant_service_count", "ai_signal_work_step_count", mode="before"
    )
    @classmethod
    def clamp_count(cls, v: Any) -> int:
        # Missing or negative counts are treated as zero
        if v is None:
            return 0
        return max(int(v), 0)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> str:
        return v or ""


@dataclass(frozen=True)
class PhotoStrategy:
    """How many photos (if any) go through vision analysis."""

    skip_vision: bool
    max_photos: int


@dataclass(frozen=True)
class TriageDecision:
    """Result from triage classification."""

    classification: TriageClassification
    photo_strategy: PhotoStrategy
    cross_service_check: bool
    returning_customer: bool
    previous_quote_count: int
    reasons: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and persistence."""
        data = asdict(self)
        data["classification"] = self.classification.value
        data["reasons"] = list(self.reasons)
        return data
