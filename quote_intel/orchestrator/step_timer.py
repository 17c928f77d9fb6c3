"""Async context manager for timing and logging pipeline steps."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from quote_intel.config.constants import PipelineStep, log_pipeline_step
from quote_intel.infrastructure.logging.logger import StructuredLogger

logger = logging.getLogger(__name__)


class StepContext:
    """Mutable context for a timed pipeline step."""

    def __init__(self) -> None:
        self.result: Any = None
        self.elapsed_ms: float | None = None

    def set_result(self, result: Any) -> None:
        self.result = result


@asynccontextmanager
async def timed_step(
    step: PipelineStep,
    structured_logger: StructuredLogger,
) -> AsyncGenerator[StepContext, None]:
    """Time a pipeline step and log its result."""
    logger.info(log_pipeline_step(step))
    ctx = StepContext()
    start = time.perf_counter()
    yield ctx
    ctx.elapsed_ms = (time.perf_counter() - start) * 1000
    if ctx.result is not None:
        structured_logger.log_step(step.value, ctx.result, duration_ms=ctx.elapsed_ms)
