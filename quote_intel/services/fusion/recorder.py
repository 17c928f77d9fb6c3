"""Signal fusion with provenance.

Records where every signal value came from while vision, form and
free-text signals are merged, and keeps an audit trail of the
disagreements that were resolved along the way.
"""

import logging
from enum import Enum
from typing import Protocol

from quote_intel.config.constants import (
    FORM_OVERRIDE_RESOLUTION,
    TEXT_OVERRIDE_RESOLUTION,
    SignalSource,
)
from quote_intel.services.fusion.models import (
    ExtractedSignal,
    FusedSignals,
    SignalConflict,
    SignalProvenance,
    SignalValue,
    StructuredSignals,
)

logger = logging.getLogger(__name__)


class PriorSignal(Protocol):
    """Anything that looks like a signal: ExtractedSignal or SignalProvenance."""

    key: str
    value: SignalValue
    confidence: float
    source: SignalSource | str


def _source_name(source: SignalSource | str) -> str:
    return source.value if isinstance(source, Enum) else str(source)


class SignalFusionRecorder:
    """Request-scoped accumulator of signal provenance and conflicts.

    One instance per quote. Last write per key wins; conflicts are append-only.
    """

    def __init__(self) -> None:
        self._provenance: dict[str, SignalProvenance] = {}
        self._conflicts: list[SignalConflict] = []
        self._snapshot: FusedSignals | None = None

    def _ensure_open(self) -> None:
        if self._snapshot is not None:
            raise RuntimeError("SignalFusionRecorder already finalized")

    def current(self, key: str) -> SignalProvenance | None:
        """Return the current provenance entry for *key*."""
        return self._provenance.get(key)

    def record_vision_signals(self, signals: list[ExtractedSignal]) -> None:
        """Seed provenance with AI-extracted signals. Never records conflicts."""
        self._ensure_open()
        for signal in signals:
            source = (
                SignalSource.INFERRED
                if _source_name(signal.source) == SignalSource.INFERRED.value
                else SignalSource.VISION
            )
            self._provenance[signal.key] = SignalProvenance(
                key=signal.key,
                value=signal.value,
                confidence=signal.confidence,
                source=source,
                evidence=signal.evidence,
            )

    def record_form_override(
        self,
        key: str,
        value: SignalValue,
        evidence: str,
        previous_signal: PriorSignal | None = None,
    ) -> None:
        """Record a form answer overriding an existing signal.

        A conflict is only recorded when the previous value came from a
        non-form source; form over form is a plain correction.
        """
        self._ensure_open()
        override_reason = None
        if previous_signal is not None and _source_name(previous_signal.source) != SignalSource.FORM.value:
            self._conflicts.append(
                SignalConflict(
                    key=key,
                    form_value=value,
                    vision_value=previous_signal.value,
                    resolved_source=SignalSource.FORM,
                    resolution=FORM_OVERRIDE_RESOLUTION,
                )
            )
            override_reason = (
                f'Overrode {_source_name(previous_signal.source)} value "{previous_signal.value}" '
                f"(confidence: {previous_signal.confidence})"
            )
            logger.debug("Form override: %s = %s (was %s)", key, value, previous_signal.value)

        self._provenance[key] = SignalProvenance(
            key=key,
            value=value,
            confidence=1.0,
            source=SignalSource.FORM,
            evidence=evidence,
            override_reason=override_reason,
        )

    def record_new_form_signal(self, key: str, value: SignalValue, evidence: str) -> None:
        """Record a form signal where no prior signal existed."""
        self._ensure_open()
        self._provenance[key] = SignalProvenance(
            key=key,
            value=value,
            confidence=1.0,
            source=SignalSource.FORM,
            evidence=evidence,
        )

    def record_text_override(
        self,
        key: str,
        value: SignalValue,
        matched_phrase: str,
        previous_signal: PriorSignal | None = None,
    ) -> None:
        """Record the customer's description overriding a signal.

        Unlike form overrides, any previous value (form included) produces a
        conflict.
        """
        self._ensure_open()
        override_reason = None
        if previous_signal is not None:
            self._conflicts.append(
                SignalConflict(
                    key=key,
                    form_value=value,
                    vision_value=previous_signal.value,
                    resolved_source=SignalSource.TEXT,
                    resolution=TEXT_OVERRIDE_RESOLUTION.format(phrase=matched_phrase),
                )
            )
            override_reason = (
                f'Overrode {_source_name(previous_signal.source)} value "{previous_signal.value}"'
            )
            logger.debug("Text override: %s = %s (was %s)", key, value, previous_signal.value)

        self._provenance[key] = SignalProvenance(
            key=key,
            value=value,
            confidence=1.0,
            source=SignalSource.TEXT,
            evidence=f'Customer stated: "{matched_phrase}"',
            override_reason=override_reason,
        )

    def finalize(self) -> FusedSignals:
        """Close the recorder and return the immutable snapshot.

        Calling again returns the same snapshot.
        """
        if self._snapshot is None:
            self._snapshot = FusedSignals(
                signals=tuple(self._provenance.values()),
                conflicts=tuple(self._conflicts),
            )
            logger.info(
                "Signal fusion finalized: %d signals, %d conflicts",
                len(self._snapshot.signals),
                len(self._snapshot.conflicts),
            )
        return self._snapshot


def initialize_fusion_from_structured_signals(
    structured_signals: StructuredSignals,
) -> SignalFusionRecorder:
    """Create a recorder seeded with the vision signals of a structured-signals object."""
    recorder = SignalFusionRecorder()
    recorder.record_vision_signals(structured_signals.signals)
    return recorder
