"""
Retry utilities for handling rate limits and transient errors.
"""

import asyncio
import logging
import re
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "connection timeout",
    "timeout expired",
    "connection reset",
    "service unavailable",
    "overloaded",
)


def is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception looks like a provider rate limit."""
    error_str = str(exception).lower()
    return "rate limit" in error_str or "rate_limit" in error_str or "429" in error_str


def is_transient_error(exception: Exception) -> bool:
    """Check if an exception is a timeout or transient connection failure."""
    if isinstance(exception, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return True
    error_str = str(exception).lower()
    return any(pattern in error_str for pattern in _TRANSIENT_PATTERNS)


async def run_with_retry(
    func: Callable[[], Any],
    max_retries: int = 3,
    initial_delay: float = 5.0,
    backoff_factor: float = 2.0,
    retry_on_rate_limit: bool = True,
) -> Any:
    """
    Execute an async function with retry logic for rate limit and transient errors.

    Args:
        func: Async function to execute (no parameters)
        max_retries: Maximum number of attempts
        initial_delay: Initial delay in seconds before first retry
        backoff_factor: Multiplier for delay between retries
        retry_on_rate_limit: Whether to retry on rate limit errors

    Returns:
        Result from the function

    Raises:
        Exception: If max retries exceeded or non-retryable error occurs
    """
    for attempt in range(max_retries):
        try:
            return await func()
        except Exception as e:
            should_retry = retry_on_rate_limit and (is_rate_limit_error(e) or is_transient_error(e))

            if not should_retry or attempt >= max_retries - 1:
                raise

            # Providers often say how long to wait
            wait_time_match = re.search(r"(\d+)\s{0,10}seconds?", str(e), re.IGNORECASE)
            if wait_time_match:
                wait_time = float(wait_time_match.group(1))
            else:
                wait_time = initial_delay * (backoff_factor**attempt)

            logger.warning(
                "Transient LLM error detected (%s). Attempt %s/%s. Waiting %.1f seconds before retry...",
                e,
                attempt + 1,
                max_retries,
                wait_time,
            )
            await asyncio.sleep(wait_time)

    raise RuntimeError("Max retries exceeded")
