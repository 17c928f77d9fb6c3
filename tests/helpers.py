"""Builders and fakes shared by the unit tests."""

import asyncio
from typing import Any

from quote_intel.services.fusion.models import ExtractedSignal, FusedSignals, StructuredSignals
from quote_intel.services.quality_gate.models import PricingResult, QualityGateInput


def make_signals(**overrides: Any) -> StructuredSignals:
    """High-confidence structured signals, overridable per test."""
    data: dict[str, Any] = {
        "overall_confidence": 0.8,
        "signals": [
            ExtractedSignal(key="item_count", value=5, confidence=0.9, source="form"),
            ExtractedSignal(key="condition_rating", value="good", confidence=0.85, source="vision"),
        ],
        "site_visit_recommended": False,
        "low_confidence_signals": [],
    }
    data.update(overrides)
    return StructuredSignals(**data)


def make_pricing(**overrides: Any) -> PricingResult:
    data: dict[str, Any] = {"total": 300, "breakdown": [{"label": "Service", "amount": 250}]}
    data.update(overrides)
    return PricingResult(**data)


def make_gate_input(**overrides: Any) -> QualityGateInput:
    data: dict[str, Any] = {
        "structured_signals": make_signals(),
        "fusion_result": FusedSignals(),
        "pricing": make_pricing(),
        "clarification_count": 0,
        "service_name": "Window Cleaning",
        "has_photos": True,
    }
    data.update(overrides)
    return QualityGateInput(**data)


def low_confidence_signals(*keys: str, confidence: float = 0.3) -> StructuredSignals:
    """Structured signals where every key is a low-confidence vision signal."""
    return make_signals(
        signals=[
            ExtractedSignal(key=key, value=1, confidence=confidence, source="vision")
            for key in keys
        ],
        low_confidence_signals=list(keys),
    )


class FakeModelClient:
    """Model client returning a canned response or raising."""

    def __init__(self, response: Any = None, error: Exception | None = None, delay: float = 0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def generate_with_schema(
        self, prompt: str, schema: dict[str, Any], system_prompt: str | None = None
    ) -> dict[str, Any]:
        self.calls.append({"prompt": prompt, "schema": schema, "system_prompt": system_prompt})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response
