"""Decision thresholds for the triage classifier and quality gate.

Defaults reproduce the production policy. Build from ``Settings`` for
per-deployment tuning, or construct directly in tests.
"""

from dataclasses import dataclass

from quote_intel.config.settings import Settings


@dataclass(frozen=True)
class TriagePolicy:
    """Thresholds used by the triage classifier."""

    complex_photo_count: int = 3
    complex_description_length: int = 500
    complex_work_step_count: int = 2
    simple_description_length: int = 100
    simple_max_service_count: int = 1
    simple_max_photos: int = 2
    max_photos_to_analyze: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> "TriagePolicy":
        return cls(
            complex_photo_count=settings.complex_photo_count,
            complex_description_length=settings.complex_description_length,
            complex_work_step_count=settings.complex_work_step_count,
            simple_description_length=settings.simple_description_length,
            simple_max_service_count=settings.simple_max_service_count,
            simple_max_photos=settings.simple_max_photos,
            max_photos_to_analyze=settings.max_photos_to_analyze,
        )


@dataclass(frozen=True)
class QualityGatePolicy:
    """Thresholds used by the quality gate."""

    low_signal_confidence: float = 0.5
    very_low_overall_confidence: float = 0.3
    site_visit_confidence: float = 0.4
    max_clarification_rounds: int = 1
    max_clarification_questions: int = 2
    max_question_options: int = 4

    @classmethod
    def from_settings(cls, settings: Settings) -> "QualityGatePolicy":
        return cls(
            low_signal_confidence=settings.low_signal_confidence,
            very_low_overall_confidence=settings.very_low_overall_confidence,
            site_visit_confidence=settings.site_visit_confidence,
            max_clarification_rounds=settings.max_clarification_rounds,
            max_clarification_questions=settings.max_clarification_questions,
            max_question_options=settings.max_question_options,
        )


DEFAULT_TRIAGE_POLICY = TriagePolicy()
DEFAULT_QUALITY_GATE_POLICY = QualityGatePolicy()
