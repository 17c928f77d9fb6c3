"""Signal fusion with provenance."""

from quote_intel.services.fusion.merge import (
    apply_clarification_answers,
    apply_description_overrides,
    convert_form_value,
    merge_form_answers,
)
from quote_intel.services.fusion.recorder import (
    SignalFusionRecorder,
    initialize_fusion_from_structured_signals,
)

__all__ = [
    "SignalFusionRecorder",
    "apply_clarification_answers",
    "apply_description_overrides",
    "convert_form_value",
    "initialize_fusion_from_structured_signals",
    "merge_form_answers",
]
