"""Triage classifier service.

Classifies quote requests by complexity using heuristics only (no AI call):

- simple:   no photos AND short description AND single-service tenant
- complex:  3+ photos OR long description OR multiple AI signal work steps
- standard: everything else
"""

import logging

from quote_intel.config.constants import TriageClassification
from quote_intel.config.policy import DEFAULT_TRIAGE_POLICY, TriagePolicy
from quote_intel.services.triage.models import PhotoStrategy, TriageDecision, TriageInput

logger = logging.getLogger(__name__)


class TriageClassifier:
    """Decides how much analysis a quote request deserves."""

    def __init__(self, policy: TriagePolicy | None = None):
        """Initialize triage classifier."""
        self.policy = policy or DEFAULT_TRIAGE_POLICY

    def classify(self, triage_input: TriageInput, previous_quote_count: int = 0) -> TriageDecision:
        """
        Classify a quote request and determine the processing strategy.

        Args:
            triage_input: Request shape (photo count, description, tenant info)
            previous_quote_count: Quotes this customer already has with the tenant

        Returns:
            Immutable TriageDecision
        """
        reasons: list[str] = []

        classification = self._determine_classification(triage_input, reasons)
        photo_strategy = self._determine_photo_strategy(triage_input.photo_count, classification)

        # Cross-service check: skip if tenant has no other services
        cross_service_check = triage_input.has_other_services and len(triage_input.description) > 0
        if not cross_service_check:
            reasons.append("Cross-service check skipped: no other services or empty description")

        decision = TriageDecision(
            classification=classification,
            photo_strategy=photo_strategy,
            cross_service_check=cross_service_check,
            returning_customer=previous_quote_count > 0,
            previous_quote_count=previous_quote_count,
            reasons=tuple(reasons),
        )
        logger.debug(
            "Triage: %s, max_photos=%s, cross_service=%s",
            classification.value,
            photo_strategy.max_photos,
            cross_service_check,
        )
        return decision

    def _determine_classification(
        self, triage_input: TriageInput, reasons: list[str]
    ) -> TriageClassification:
        """Determine complexity classification."""
        policy = self.policy
        description_length = len(triage_input.description)

        complex_indicators: list[str] = []
        if triage_input.photo_count >= policy.complex_photo_count:
            complex_indicators.append(
                f"{triage_input.photo_count} photos (>={policy.complex_photo_count})"
            )
        if description_length > policy.complex_description_length:
            complex_indicators.append(
                f"description {description_length} chars (>{policy.complex_description_length})"
            )
        if triage_input.ai_signal_work_step_count >= policy.complex_work_step_count:
            complex_indicators.append(
                f"{triage_input.ai_signal_work_step_count} AI signal work steps "
                f"(>={policy.complex_work_step_count})"
            )

        if complex_indicators:
            reasons.append(f"Complex: {', '.join(complex_indicators)}")
            return TriageClassification.COMPLEX

        # Simple: ALL must hold
        is_simple = (
            triage_input.photo_count == 0
            and description_length < policy.simple_description_length
            and triage_input.tenant_service_count <= policy.simple_max_service_count
        )
        if is_simple:
            reasons.append("Simple: no photos, short description, single-service tenant")
            return TriageClassification.SIMPLE

        reasons.append("Standard: does not meet simple or complex thresholds")
        return TriageClassification.STANDARD

    def _determine_photo_strategy(
        self, photo_count: int, classification: TriageClassification
    ) -> PhotoStrategy:
        """Determine how many photos to analyze."""
        if photo_count == 0:
            return PhotoStrategy(skip_vision=True, max_photos=0)

        if classification == TriageClassification.SIMPLE:
            # Simple requests shouldn't have photos, but if they do, analyze minimally
            return PhotoStrategy(
                skip_vision=False, max_photos=min(photo_count, self.policy.simple_max_photos)
            )

        return PhotoStrategy(
            skip_vision=False, max_photos=min(photo_count, self.policy.max_photos_to_analyze)
        )


def classify(triage_input: TriageInput, previous_quote_count: int = 0) -> TriageDecision:
    """Classify with the default policy."""
    return TriageClassifier().classify(triage_input, previous_quote_count)
