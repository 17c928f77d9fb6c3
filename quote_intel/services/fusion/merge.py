"""Merging form answers, clarification replies and description text into signals.

Every change goes through a ``SignalFusionRecorder`` so provenance and
conflicts stay auditable. Each function returns an updated copy of the
structured signals; the input object is never mutated.
"""

import logging
from statistics import mean
from typing import Any, Iterable

from quote_intel.config.constants import (
    ACCESS_PHRASES,
    ACCESS_SIGNAL_KEY,
    INTERNAL_FIELD_PREFIX,
    TRUTHY_FORM_VALUES,
    SignalSource,
)
from quote_intel.services.fusion.models import (
    ClarificationAnswer,
    ExpectedSignal,
    ExtractedSignal,
    FormAnswer,
    SignalValue,
    StructuredSignals,
    WidgetField,
)
from quote_intel.services.fusion.recorder import SignalFusionRecorder

logger = logging.getLogger(__name__)


def _parse_number(text: str) -> int | float | None:
    try:
        number = float(text.strip())
    except ValueError:
        return None
    return int(number) if number.is_integer() else number


def _sum_numbers(parts: Iterable[Any]) -> int | float | None:
    numbers = [n for n in (_parse_number(str(p)) for p in parts) if n is not None]
    if not numbers:
        return None
    total = sum(numbers)
    return int(total) if float(total).is_integer() else total


def convert_form_value(value: Any, expected_type: str) -> SignalValue | None:
    """
    Convert a raw form answer to a signal value of *expected_type*.

    Numbers: lists and comma-separated strings are summed.
    Booleans: "true", "yes", "1" and "on" are truthy.
    Anything else becomes a string (lists joined with ", ").

    Returns None when the answer cannot be converted.
    """
    if expected_type == "number":
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, list):
            return _sum_numbers(value)
        if isinstance(value, str):
            if "," in value:
                return _sum_numbers(value.split(","))
            return _parse_number(value)
        return None

    if expected_type == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in TRUTHY_FORM_VALUES
        return None

    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def _infer_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str) and value.strip():
        parts = value.split(",")
        if all(_parse_number(p) is not None for p in parts):
            return "number"
    return "string"


def _rebuild(
    structured_signals: StructuredSignals,
    signals: list[ExtractedSignal],
    low_confidence_threshold: float,
) -> StructuredSignals:
    """Recompute overall confidence and the low-confidence list."""
    overall = structured_signals.overall_confidence
    if signals:
        overall = max(overall, mean(s.confidence for s in signals))
    low_confidence = [s.key for s in signals if s.confidence < low_confidence_threshold]
    return structured_signals.model_copy(
        update={
            "signals": signals,
            "overall_confidence": overall,
            "low_confidence_signals": low_confidence,
        }
    )


def _replace_or_append(signals: list[ExtractedSignal], new_signal: ExtractedSignal) -> None:
    for index, signal in enumerate(signals):
        if signal.key == new_signal.key:
            signals[index] = new_signal
            return
    signals.append(new_signal)


def merge_form_answers(
    recorder: SignalFusionRecorder,
    structured_signals: StructuredSignals,
    form_answers: list[FormAnswer],
    widget_fields: list[WidgetField] | None = None,
    expected_signals: list[ExpectedSignal] | None = None,
    low_confidence_threshold: float = 0.7,
) -> StructuredSignals:
    """
    Merge form answers into the structured signals.

    Form answers always override AI-extracted values; an existing form
    signal is kept.

    Args:
        recorder: Fusion recorder for this quote
        structured_signals: Signals extracted so far
        form_answers: Customer's widget answers
        widget_fields: Widget config, for explicit field -> signal mappings and labels
        expected_signals: Service config, for signal types
        low_confidence_threshold: Signals under this go to low_confidence_signals

    Returns:
        Updated StructuredSignals
    """
    fields_by_id = {f.field_id: f for f in widget_fields or []}
    types_by_key = {s.signal_key: s.type for s in expected_signals or []}
    signals = list(structured_signals.signals)
    changed = False

    for answer in form_answers:
        if answer.field_id.startswith(INTERNAL_FIELD_PREFIX):
            continue
        if answer.value is None or answer.value == "" or answer.value == []:
            continue

        field = fields_by_id.get(answer.field_id)
        signal_key = (field.maps_to_signal if field else None) or answer.field_id

        signal_type = types_by_key.get(signal_key, "string")
        if signal_type == "string":
            signal_type = _infer_type(answer.value)

        value = convert_form_value(answer.value, signal_type)
        if value is None:
            logger.debug("Skipping form answer %s: cannot convert to %s", answer.field_id, signal_type)
            continue

        evidence = f"Customer-provided: {(field.label if field else '') or answer.field_id}"
        existing = next((s for s in signals if s.key == signal_key), None)

        if existing is None:
            recorder.record_new_form_signal(signal_key, value, evidence)
        elif existing.source != SignalSource.FORM.value:
            logger.info(
                "Form override: %s = %s (was: %s from %s)",
                signal_key,
                value,
                existing.value,
                existing.source,
            )
            recorder.record_form_override(signal_key, value, evidence, existing)
        else:
            logger.debug("Keeping existing form signal %s = %s", signal_key, existing.value)
            continue

        _replace_or_append(
            signals,
            ExtractedSignal(
                key=signal_key,
                value=value,
                confidence=1.0,
                source="form",
                evidence=evidence,
            ),
        )
        changed = True

    if not changed:
        return structured_signals
    return _rebuild(structured_signals, signals, low_confidence_threshold)


def apply_clarification_answers(
    recorder: SignalFusionRecorder,
    structured_signals: StructuredSignals,
    answers: list[ClarificationAnswer],
    low_confidence_threshold: float = 0.7,
) -> StructuredSignals:
    """Apply clarification replies as form input on their target signals."""
    signals = list(structured_signals.signals)

    for answer in answers:
        key = answer.target_signal_key
        existing = next((s for s in signals if s.key == key), None)
        signal_type = _infer_type(existing.value if existing else answer.value)
        value = convert_form_value(answer.value, signal_type)
        if value is None:
            value = convert_form_value(answer.value, "string")

        evidence = f"Customer clarification: {answer.question_id}"
        if existing is None:
            recorder.record_new_form_signal(key, value, evidence)
        else:
            recorder.record_form_override(key, value, evidence, existing)

        _replace_or_append(
            signals,
            ExtractedSignal(key=key, value=value, confidence=1.0, source="form", evidence=evidence),
        )

    return _rebuild(structured_signals, signals, low_confidence_threshold)


def match_access_phrase(description: str) -> tuple[str, str] | None:
    """Return (matched phrase, access value) for the first access phrase found."""
    lowered = description.lower()
    for phrase, value in ACCESS_PHRASES:
        if phrase in lowered:
            return phrase, value
    return None


def apply_description_overrides(
    recorder: SignalFusionRecorder,
    structured_signals: StructuredSignals,
    description: str,
    low_confidence_threshold: float = 0.7,
) -> StructuredSignals:
    """
    Let an explicit access statement in the description override vision.

    Values the customer already gave on the form are left alone, and so are
    values that already agree with the statement.
    """
    if not description:
        return structured_signals

    match = match_access_phrase(description)
    if match is None:
        return structured_signals

    phrase, value = match
    existing = structured_signals.get_signal(ACCESS_SIGNAL_KEY)
    if existing is not None and (
        existing.source == SignalSource.FORM.value or existing.value == value
    ):
        return structured_signals

    recorder.record_text_override(ACCESS_SIGNAL_KEY, value, phrase, existing)
    logger.info("Description override: %s = %s (stated %r)", ACCESS_SIGNAL_KEY, value, phrase)

    signals = list(structured_signals.signals)
    _replace_or_append(
        signals,
        ExtractedSignal(
            key=ACCESS_SIGNAL_KEY,
            value=value,
            confidence=1.0,
            source="text",
            evidence=f'Customer stated: "{phrase}"',
        ),
    )
    return _rebuild(structured_signals, signals, low_confidence_threshold)
